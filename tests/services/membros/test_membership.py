"""
Testes do MembershipState (protocolo otimista e refresh).
"""
import asyncio

import pytest

from audiencia.core.exceptions import BackendError, ToggleInFlightError
from audiencia.services.membros.membership import MembershipState


@pytest.fixture
def estado():
    return MembershipState(group_id="g1", member_ids=["c001", "c002"])


class TestOtimista:

    def test_begin_aplica_mudanca(self, estado):
        change = estado.begin("c003", member=True)

        assert estado.is_member("c003")
        assert estado.in_flight("c003")
        assert change.previous is False
        assert change.desired is True

    def test_commit_mantem_mudanca(self, estado):
        change = estado.begin("c001", member=False)
        estado.commit(change)

        assert "c001" not in estado
        assert not estado.in_flight("c001")

    def test_rollback_restaura_valor_anterior(self, estado):
        change = estado.begin("c001", member=False)
        estado.rollback(change)

        assert estado.member_ids == frozenset({"c001", "c002"})
        assert not estado.in_flight("c001")

    def test_segundo_begin_no_mesmo_id_e_rejeitado(self, estado):
        estado.begin("c003", member=True)

        with pytest.raises(ToggleInFlightError):
            estado.begin("c003", member=False)

        assert estado.is_member("c003")

    def test_rollback_nao_afeta_outros_ids(self, estado):
        change_a = estado.begin("c003", member=True)
        estado.begin("c004", member=True)

        estado.rollback(change_a)

        assert not estado.is_member("c003")
        assert estado.is_member("c004")
        assert estado.in_flight("c004")

    def test_rollback_apos_troca_de_grupo_e_ignorado(self, estado):
        change = estado.begin("c003", member=True)
        estado.retarget("g2")
        estado.replace(["c009"])

        estado.rollback(change)

        assert estado.member_ids == frozenset({"c009"})

    def test_rollback_apos_voltar_ao_mesmo_grupo_e_ignorado(self, estado):
        change = estado.begin("c003", member=True)
        estado.retarget("g2")
        estado.retarget("g1")
        estado.replace(["c001"])

        estado.rollback(change)

        assert estado.member_ids == frozenset({"c001"})


class TestRetarget:

    def test_limpa_membros_e_em_andamento(self, estado):
        estado.begin("c003", member=True)
        estado.retarget("g2")

        assert estado.group_id == "g2"
        assert len(estado) == 0
        assert not estado.in_flight("c003")
        assert estado.loaded is False


class TestRefresh:

    @pytest.mark.asyncio
    async def test_substitui_pelo_servidor(self, fake_api):
        estado = MembershipState(group_id="g1", member_ids=["c999"])

        aplicou = await estado.refresh(fake_api)

        assert aplicou is True
        assert estado.member_ids == frozenset({"c001", "c002"})
        assert estado.loaded is True

    @pytest.mark.asyncio
    async def test_sem_grupo_nao_chama_api(self, fake_api):
        estado = MembershipState()

        assert await estado.refresh(fake_api) is False
        assert fake_api.calls_of("get_group") == []

    @pytest.mark.asyncio
    async def test_falha_mantem_estado_e_propaga(self, estado, fake_api):
        fake_api.fail("get_group")

        with pytest.raises(BackendError):
            await estado.refresh(fake_api)

        assert estado.member_ids == frozenset({"c001", "c002"})

    @pytest.mark.asyncio
    async def test_resposta_de_grupo_antigo_e_descartada(self, fake_api):
        estado = MembershipState(group_id="g1")
        gate = fake_api.hold("get_group")

        antiga = asyncio.create_task(estado.refresh(fake_api))
        await asyncio.sleep(0)

        estado.retarget("g2")
        await estado.refresh(fake_api)

        gate.set()
        assert await antiga is False
        assert estado.group_id == "g2"
        assert len(estado) == 0
        assert estado.loaded is True
