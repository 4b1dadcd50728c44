"""
Testes da PageCache (scroll infinito).
"""
import asyncio

import pytest

from audiencia.core.exceptions import BackendError, ConfigurationError
from audiencia.services.membros.filter_context import FilterContext
from audiencia.services.membros.page_cache import (
    PageCache,
    PageLoadStatus,
    should_load_more,
)
from audiencia.services.membros.types import FilterMode
from tests.fakes import FakeCampaignApi, criar_candidato, criar_candidatos


@pytest.fixture
def filtro():
    return FilterContext(group_id="g1")


@pytest.fixture
def cache(fake_api, filtro):
    return PageCache(fake_api, filtro, page_size=20)


class TestLoadNext:
    """Acumulo de paginas em ordem de cursor."""

    @pytest.mark.asyncio
    async def test_primeira_pagina(self, cache, fake_api):
        result = await cache.load_next()

        assert result.status == PageLoadStatus.LOADED
        assert result.page == 1
        assert len(result.appended) == 20
        assert cache.cursor == 2
        assert cache.exhausted is False
        assert cache.total == 45
        assert fake_api.calls_of("list_customers")[0][1:3] == (1, 20)

    @pytest.mark.asyncio
    async def test_concatena_paginas_sem_buracos_nem_duplicatas(self, cache, candidatos):
        for _ in range(3):
            await cache.load_next()

        assert cache.ids == [c.id for c in candidatos]
        assert len(set(cache.ids)) == len(cache)

    @pytest.mark.asyncio
    async def test_pagina_curta_esgota(self, cache, fake_api):
        for _ in range(3):
            await cache.load_next()

        assert cache.exhausted is True
        assert cache.cursor == 4

        result = await cache.load_next()
        assert result.status == PageLoadStatus.SKIPPED_EXHAUSTED
        assert len(fake_api.calls_of("list_customers")) == 3

    @pytest.mark.asyncio
    async def test_pagina_cheia_nao_esgota(self, filtro):
        api = FakeCampaignApi(criar_candidatos(40))
        cache = PageCache(api, filtro, page_size=20)

        await cache.load_next()
        await cache.load_next()
        assert cache.exhausted is False

        # Terceira pagina vem vazia: esgota sem avancar cursor
        result = await cache.load_next()
        assert result.status == PageLoadStatus.LOADED
        assert result.appended == []
        assert cache.exhausted is True
        assert cache.cursor == 3

    @pytest.mark.asyncio
    async def test_lista_vazia(self, filtro):
        cache = PageCache(FakeCampaignApi([]), filtro, page_size=20)

        await cache.load_next()

        assert len(cache) == 0
        assert cache.exhausted is True
        assert cache.cursor == 1

    @pytest.mark.asyncio
    async def test_id_repetido_na_resposta_e_ignorado(self, filtro):
        repetido = criar_candidato("c001")
        api = FakeCampaignApi([repetido, criar_candidato("c002"), repetido])
        cache = PageCache(api, filtro, page_size=20)

        await cache.load_next()

        assert cache.ids == ["c001", "c002"]

    @pytest.mark.asyncio
    async def test_get_e_contains(self, cache):
        await cache.load_next()

        assert "c005" in cache
        assert cache.get("c005").id == "c005"
        assert cache.get("c999") is None


class TestInFlight:
    """Scroll rapido nao duplica pagina."""

    @pytest.mark.asyncio
    async def test_segunda_chamada_durante_carga_e_ignorada(self, cache, fake_api):
        gate = fake_api.hold("list_customers")

        primeira = asyncio.create_task(cache.load_next())
        await asyncio.sleep(0)
        assert cache.loading is True

        segunda = await cache.load_next()
        assert segunda.status == PageLoadStatus.SKIPPED_IN_FLIGHT

        gate.set()
        result = await primeira

        assert result.status == PageLoadStatus.LOADED
        assert len(fake_api.calls_of("list_customers")) == 1
        assert cache.loading is False
        assert cache.cursor == 2


class TestFalha:
    """Falha de leitura nao corrompe o estado."""

    @pytest.mark.asyncio
    async def test_falha_preserva_estado_e_propaga(self, cache, fake_api):
        await cache.load_next()
        antes = cache.ids
        fake_api.fail("list_customers")

        with pytest.raises(BackendError):
            await cache.load_next()

        assert cache.ids == antes
        assert cache.cursor == 2
        assert cache.exhausted is False
        assert cache.loading is False

    @pytest.mark.asyncio
    async def test_retenta_mesma_pagina_apos_falha(self, cache, fake_api):
        fake_api.fail("list_customers")
        with pytest.raises(BackendError):
            await cache.load_next()

        result = await cache.load_next()

        assert result.page == 1
        assert len(cache) == 20


class TestEpocas:
    """Reset e troca de filtro."""

    @pytest.mark.asyncio
    async def test_reset_volta_ao_inicio(self, cache):
        await cache.load_next()
        await cache.load_next()

        cache.reset()

        assert len(cache) == 0
        assert cache.cursor == 1
        assert cache.exhausted is False
        assert cache.total == 0

    @pytest.mark.asyncio
    async def test_troca_de_filtro_reinicia_na_pagina_um(self, cache, filtro, fake_api):
        await cache.load_next()
        await cache.load_next()

        filtro.set_search("c01")
        result = await cache.load_next()

        assert result.page == 1
        assert cache.ids == [f"c{i:03d}" for i in range(10, 20)]
        ultima = fake_api.calls_of("list_customers")[-1]
        assert ultima[1] == 1
        assert ultima[3] == "c01"

    @pytest.mark.asyncio
    async def test_resposta_de_epoca_antiga_e_descartada(self, cache, filtro, fake_api):
        gate = fake_api.hold("list_customers")
        antiga = asyncio.create_task(cache.load_next())
        await asyncio.sleep(0)

        # Usuario troca o filtro enquanto a pagina antiga carrega
        filtro.set_mode(FilterMode.NON_MEMBER)
        nova = await cache.load_next()
        assert nova.status == PageLoadStatus.LOADED

        gate.set()
        result = await antiga

        assert result.status == PageLoadStatus.DISCARDED_STALE
        assert "c001" not in cache
        assert cache.ids[0] == "c003"
        assert cache.cursor == 2

    @pytest.mark.asyncio
    async def test_erro_de_epoca_antiga_nao_propaga(self, cache, fake_api):
        gate = fake_api.hold("list_customers")
        fake_api.fail("list_customers")
        antiga = asyncio.create_task(cache.load_next())
        await asyncio.sleep(0)

        cache.reset()
        gate.set()
        result = await antiga

        assert result.status == PageLoadStatus.DISCARDED_STALE
        assert cache.loading is False

    @pytest.mark.asyncio
    async def test_reload(self, cache):
        await cache.load_next()
        await cache.load_next()

        result = await cache.reload()

        assert result.page == 1
        assert len(cache) == 20


class TestConfig:

    def test_page_size_invalido(self, fake_api, filtro):
        with pytest.raises(ConfigurationError):
            PageCache(fake_api, filtro, page_size=-1)


class TestShouldLoadMore:

    def test_perto_do_fim(self):
        assert should_load_more(scroll_top=560, client_height=400, scroll_height=1000, threshold=50)

    def test_longe_do_fim(self):
        assert not should_load_more(scroll_top=100, client_height=400, scroll_height=1000, threshold=50)

    def test_threshold_padrao_das_settings(self):
        assert should_load_more(scroll_top=551, client_height=400, scroll_height=1000)
