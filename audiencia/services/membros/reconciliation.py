"""
Reconciliacao de membros com o backend.

Responsavel por:
- Toggle individual otimista (com rollback exato em caso de falha)
- Adicao em lote filtrada por prontidao (com confirmacao se houver descarte)
- Remocao em lote via N DELETEs concorrentes (a API nao tem remocao em lote)
- Refresh autoritativo dos membros apos toda escrita
- Recarregar a lista quando o filtro ativo depende de membros

Falhas nunca derrubam a sessao: viram aviso no UserPrompt e um resultado
com o desfecho.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from audiencia.core.exceptions import (
    BackendError,
    ReadinessError,
    ToggleInFlightError,
    ValidationError,
)
from audiencia.services.membros.filter_context import FilterContext
from audiencia.services.membros.membership import MembershipState
from audiencia.services.membros.page_cache import PageCache
from audiencia.services.membros.prompts import UserPrompt
from audiencia.services.membros.selection import SelectionSet
from audiencia.services.membros.types import Candidate

logger = logging.getLogger(__name__)


class ToggleOutcome(str, Enum):
    APPLIED = "applied"
    REJECTED_NOT_READY = "rejected_not_ready"
    REJECTED_IN_FLIGHT = "rejected_in_flight"
    REJECTED_UNKNOWN = "rejected_unknown"
    FAILED = "failed"


@dataclass
class ToggleResult:
    """Resultado de um toggle individual."""

    customer_id: str
    outcome: ToggleOutcome
    member: bool
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome == ToggleOutcome.APPLIED


class BulkAddOutcome(str, Enum):
    ADDED = "added"
    ABORTED_EMPTY = "aborted_empty"
    DECLINED = "declined"
    FAILED = "failed"


@dataclass
class BulkAddResult:
    """Resultado de uma adicao em lote."""

    outcome: BulkAddOutcome
    requested: List[str] = field(default_factory=list)
    sent: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome == BulkAddOutcome.ADDED

    @property
    def dropped(self) -> List[str]:
        """Ids descartados por nao estarem prontos."""
        sent = set(self.sent)
        return [i for i in self.requested if i not in sent]


@dataclass
class RemoveItemResult:
    """Resultado do DELETE de um cliente."""

    customer_id: str
    success: bool
    error: Optional[str] = None


@dataclass
class BulkRemoveResult:
    """Resultado da remocao em lote, um item por id."""

    items: List[RemoveItemResult] = field(default_factory=list)
    declined: bool = False

    @property
    def success(self) -> bool:
        return not self.declined and bool(self.items) and all(i.success for i in self.items)

    @property
    def succeeded_ids(self) -> List[str]:
        return [i.customer_id for i in self.items if i.success]

    @property
    def failed_ids(self) -> List[str]:
        return [i.customer_id for i in self.items if not i.success]


class ReconciliationEngine:
    """Orquestra escritas de membros contra o backend."""

    def __init__(
        self,
        api,
        membership: MembershipState,
        page_cache: PageCache,
        filter_context: FilterContext,
        selection: SelectionSet,
        prompt: UserPrompt,
    ):
        self._api = api
        self.membership = membership
        self.page_cache = page_cache
        self.filter_context = filter_context
        self.selection = selection
        self.prompt = prompt
        # Marcado pela sessao ao fechar; escritas em andamento nao recarregam mais a lista
        self.closed = False

    def _group_id(self) -> str:
        group_id = self.membership.group_id
        if not group_id:
            raise ValidationError("Nenhum grupo selecionado")
        return group_id

    # ------------------------------------------------------------------
    # Apoio
    # ------------------------------------------------------------------

    async def refresh_membership(self) -> bool:
        """Refresh autoritativo; falha vira aviso e o estado atual e mantido."""
        try:
            return await self.membership.refresh(self._api)
        except BackendError as e:
            self.prompt.show_error(f"Erro ao recarregar membros: {e.message}")
            return False

    async def reload_list(self) -> bool:
        """Reset + primeira pagina; falha vira aviso. No-op com a sessao fechada."""
        if self.closed:
            logger.debug("Reload ignorado: sessao fechada")
            return False
        try:
            await self.page_cache.reload()
            return True
        except BackendError as e:
            self.prompt.show_error(f"Erro ao carregar clientes: {e.message}")
            return False

    async def _reload_if_membership_filter(self):
        if self.filter_context.mode.depends_on_membership:
            await self.reload_list()

    # ------------------------------------------------------------------
    # Toggle individual
    # ------------------------------------------------------------------

    async def toggle(self, candidate: Candidate) -> ToggleResult:
        """
        Alterna a participacao de um cliente no grupo.

        1. Calcula o estado desejado
        2. Entrar exige prontidao (sair e sempre permitido)
        3. Aplica otimista
        4. Chama add/remove individual
        5. Sucesso: refresh autoritativo
        6. Falha: rollback exato + aviso
        7. Filtro dependente de membros: recarrega a lista

        Args:
            candidate: Candidato como carregado na lista

        Returns:
            ToggleResult com desfecho e estado final do cliente
        """
        group_id = self._group_id()
        customer_id = candidate.id
        desired = not self.membership.is_member(customer_id)

        if desired and not candidate.is_ready:
            error = ReadinessError(customer_id, candidate.display_name)
            self.prompt.show_error(error.message)
            return ToggleResult(customer_id, ToggleOutcome.REJECTED_NOT_READY, False, error.message)

        try:
            change = self.membership.begin(customer_id, desired)
        except ToggleInFlightError as e:
            self.prompt.show_error(e.message)
            return ToggleResult(
                customer_id,
                ToggleOutcome.REJECTED_IN_FLIGHT,
                self.membership.is_member(customer_id),
                e.message,
            )

        try:
            if desired:
                await self._api.add_members(group_id, [customer_id])
            else:
                await self._api.remove_member(group_id, customer_id)
        except BackendError as e:
            self.membership.rollback(change)
            acao = "adicionar" if desired else "remover"
            logger.warning(f"Toggle de {customer_id} no grupo {group_id} falhou: {e}")
            self.prompt.show_error(f"Erro ao {acao} {candidate.display_name}: {e.message}")
            return ToggleResult(
                customer_id,
                ToggleOutcome.FAILED,
                self.membership.is_member(customer_id),
                e.message,
            )
        except asyncio.CancelledError:
            self.membership.rollback(change)
            raise

        self.membership.commit(change)
        logger.info(
            f"Cliente {customer_id} {'adicionado ao' if desired else 'removido do'} grupo {group_id}"
        )

        await self.refresh_membership()
        await self._reload_if_membership_filter()

        return ToggleResult(
            customer_id, ToggleOutcome.APPLIED, self.membership.is_member(customer_id)
        )

    # ------------------------------------------------------------------
    # Lote
    # ------------------------------------------------------------------

    async def bulk_add(self) -> BulkAddResult:
        """
        Adiciona a selecao ao grupo em uma unica chamada.

        So vao os prontos. Se algum foi descartado, o usuario confirma o
        conjunto reduzido; conjunto reduzido vazio aborta sem chamar a API.
        Nada e aplicado otimista, entao falha nao precisa de rollback.
        """
        group_id = self._group_id()
        requested = list(self.selection.ids)

        if not requested:
            self.prompt.show_error("Nenhum cliente selecionado")
            return BulkAddResult(BulkAddOutcome.ABORTED_EMPTY)

        ready, not_ready = self.selection.partition_ready(self.page_cache.get)

        if not_ready:
            if not ready:
                self.prompt.show_error(
                    f"Nenhum dos {len(requested)} clientes selecionados esta pronto "
                    f"(telefone e WhatsApp validados)"
                )
                return BulkAddResult(BulkAddOutcome.ABORTED_EMPTY, requested)

            confirmed = await self.prompt.confirm(
                f"Apenas {len(ready)} de {len(requested)} clientes selecionados estao prontos. "
                f"Adicionar somente os {len(ready)} validos?"
            )
            if not confirmed:
                logger.info(f"Adicao em lote recusada pelo usuario ({len(ready)}/{len(requested)} prontos)")
                return BulkAddResult(BulkAddOutcome.DECLINED, requested)

        try:
            await self._api.add_members(group_id, ready)
        except BackendError as e:
            logger.warning(f"Adicao em lote no grupo {group_id} falhou: {e}")
            self.prompt.show_error(f"Erro ao adicionar clientes: {e.message}")
            return BulkAddResult(BulkAddOutcome.FAILED, requested, ready, e.message)

        self.prompt.show_success(f"{len(ready)} cliente(s) adicionados ao grupo")
        await self.refresh_membership()
        self.selection.clear()
        await self._reload_if_membership_filter()

        return BulkAddResult(BulkAddOutcome.ADDED, requested, ready)

    async def _remove_one(self, group_id: str, customer_id: str) -> RemoveItemResult:
        if self.membership.in_flight(customer_id):
            # Toggle individual do mesmo cliente ainda nao terminou
            error = ToggleInFlightError(customer_id)
            logger.info(f"Remocao de {customer_id} ignorada: toggle em andamento")
            return RemoveItemResult(customer_id, False, error.message)
        try:
            await self._api.remove_member(group_id, customer_id)
            return RemoveItemResult(customer_id, True)
        except BackendError as e:
            logger.warning(f"Remocao de {customer_id} do grupo {group_id} falhou: {e}")
            return RemoveItemResult(customer_id, False, e.message)

    async def bulk_remove(self) -> BulkRemoveResult:
        """
        Remove a selecao do grupo com um DELETE por cliente, em paralelo.

        Nao e atomico: falha parcial e reportada como falha, mas o que deu
        certo ja mudou no servidor. O refresh roda sempre e e o que alinha o
        estado local ao resultado real.
        """
        group_id = self._group_id()
        ids = list(self.selection.ids)

        if not ids:
            self.prompt.show_error("Nenhum cliente selecionado")
            return BulkRemoveResult()

        if not await self.prompt.confirm(f"Remover {len(ids)} cliente(s) do grupo?"):
            return BulkRemoveResult(declined=True)

        try:
            items = await asyncio.gather(*(self._remove_one(group_id, i) for i in ids))
        finally:
            # Parte dos DELETEs pode ter passado mesmo se o lote falhou
            await self.refresh_membership()
        result = BulkRemoveResult(items=list(items))
        self.selection.clear()

        if result.failed_ids:
            self.prompt.show_error(
                f"Falha ao remover {len(result.failed_ids)} de {len(ids)} cliente(s)"
            )
        else:
            self.prompt.show_success(f"{len(ids)} cliente(s) removidos do grupo")

        await self._reload_if_membership_filter()
        return result
