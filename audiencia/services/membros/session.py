"""
Sessao da tela de membros de um grupo.

Cria e possui uma instancia de cada componente (filtro, lista, selecao,
membros, debounce, reconciliacao) enquanto a tela esta aberta. A camada de
UI chama apenas os metodos desta classe.
"""
import logging
from typing import Optional

from audiencia.core.config import Settings, settings as default_settings
from audiencia.core.exceptions import (
    AudienciaException,
    BackendError,
    SessionClosedError,
    ValidationError,
)
from audiencia.core.logging import get_logger
from audiencia.services.membros.debouncer import SearchDebouncer
from audiencia.services.membros.filter_context import FilterContext
from audiencia.services.membros.membership import MembershipState
from audiencia.services.membros.page_cache import (
    PageCache,
    PageLoadResult,
    PageLoadStatus,
    should_load_more,
)
from audiencia.services.membros.prompts import LoggingPrompt, UserPrompt
from audiencia.services.membros.reconciliation import (
    BulkAddOutcome,
    BulkAddResult,
    BulkRemoveResult,
    ReconciliationEngine,
    ToggleOutcome,
    ToggleResult,
)
from audiencia.services.membros.selection import SelectionSet
from audiencia.services.membros.types import FilterMode, ImportResult

logger = logging.getLogger(__name__)


class AudienceSession:
    """Estado e acoes da tela de gestao de membros."""

    def __init__(
        self,
        api,
        prompt: Optional[UserPrompt] = None,
        settings: Optional[Settings] = None,
        quiet_period: Optional[float] = None,
    ):
        """
        Args:
            api: CampaignApiClient (ou equivalente)
            prompt: Adaptador de UI (default: LoggingPrompt)
            settings: Configuracoes (default: settings globais)
            quiet_period: Sobrescreve o debounce da busca, em segundos
        """
        self.settings = settings or default_settings
        self.api = api
        self.prompt = prompt or LoggingPrompt()

        self.filter = FilterContext()
        self.page_cache = PageCache(api, self.filter, page_size=self.settings.PAGE_SIZE)
        self.selection = SelectionSet()
        self.membership = MembershipState()
        self.engine = ReconciliationEngine(
            api, self.membership, self.page_cache, self.filter, self.selection, self.prompt
        )
        self.debouncer = SearchDebouncer(
            self._apply_search,
            quiet_period=(
                self.settings.search_debounce_seconds if quiet_period is None else quiet_period
            ),
            on_error=self._report_error,
        )
        self.closed = False
        self._log = logger

    # ------------------------------------------------------------------
    # Apoio
    # ------------------------------------------------------------------

    def _ensure_open(self):
        if self.closed:
            raise SessionClosedError()

    def _report_error(self, error: Exception):
        if isinstance(error, AudienciaException):
            self.prompt.show_error(error.message)
        else:
            self.prompt.show_error(f"Erro inesperado: {error}")

    async def _safe_load(self, reload: bool) -> Optional[PageLoadResult]:
        if self.closed:
            return None
        try:
            if reload:
                return await self.page_cache.reload()
            return await self.page_cache.load_next()
        except BackendError as e:
            self.prompt.show_error(f"Erro ao carregar clientes: {e.message}")
            return None

    @property
    def group_id(self) -> Optional[str]:
        return self.membership.group_id

    @property
    def member_count(self) -> int:
        return len(self.membership)

    def is_member(self, customer_id: str) -> bool:
        return self.membership.is_member(customer_id)

    # ------------------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------------------

    async def open(self, group_id: str) -> None:
        """Abre a tela para um grupo: membros + primeira pagina."""
        self._ensure_open()
        self._log = get_logger(__name__, grupo_id=group_id)
        self._log.info(f"Abrindo gestao de membros do grupo {group_id}")

        self.membership.retarget(group_id)
        self.filter.set_group(group_id)
        self.filter.set_search("")
        self.selection.clear()

        await self.engine.refresh_membership()
        await self._safe_load(reload=True)

    async def switch_group(self, group_id: str) -> None:
        """Troca o grupo alvo sem fechar a tela."""
        self._ensure_open()
        if group_id == self.membership.group_id:
            return
        self.debouncer.cancel()
        await self.open(group_id)

    def close(self) -> None:
        """Fecha a tela: cancela busca agendada e descarta estado."""
        if self.closed:
            return
        self.debouncer.cancel()
        self.engine.closed = True
        self.selection.clear()
        self.page_cache.reset()
        self.membership.retarget(None)
        self.closed = True
        self._log.info("Gestao de membros fechada")

    # ------------------------------------------------------------------
    # Busca e filtro
    # ------------------------------------------------------------------

    def on_query_changed(self, text: str) -> None:
        """Texto digitado na busca (debounced)."""
        self._ensure_open()
        self.debouncer.on_query_changed(text)

    async def _apply_search(self, text: str) -> None:
        if self.closed:
            return
        if self.filter.set_search(text):
            await self._safe_load(reload=True)

    async def set_filter_mode(self, mode: FilterMode) -> None:
        """Troca entre todos / membros / nao membros."""
        self._ensure_open()
        try:
            changed = self.filter.set_mode(mode)
        except ValidationError as e:
            self.prompt.show_error(e.message)
            return
        if changed:
            await self._safe_load(reload=True)

    # ------------------------------------------------------------------
    # Scroll
    # ------------------------------------------------------------------

    async def load_more(self) -> Optional[PageLoadResult]:
        """Proxima pagina (no-op se esgotada ou ja carregando)."""
        self._ensure_open()
        return await self._safe_load(reload=False)

    async def on_scroll(
        self, scroll_top: float, client_height: float, scroll_height: float
    ) -> Optional[PageLoadResult]:
        """Evento de scroll da lista; carrega mais perto do fim."""
        self._ensure_open()
        if not should_load_more(
            scroll_top, client_height, scroll_height, self.settings.SCROLL_THRESHOLD_PX
        ):
            return None
        result = await self._safe_load(reload=False)
        if result is not None and result.status == PageLoadStatus.SKIPPED_IN_FLIGHT:
            self._log.debug("Scroll ignorado: pagina ja em carregamento")
        return result

    # ------------------------------------------------------------------
    # Selecao
    # ------------------------------------------------------------------

    def toggle_selection(self, customer_id: str) -> bool:
        self._ensure_open()
        return self.selection.toggle(customer_id)

    def toggle_select_all_loaded(self) -> bool:
        self._ensure_open()
        return self.selection.select_all_loaded(self.page_cache.ids)

    @property
    def all_loaded_selected(self) -> bool:
        return self.selection.is_all_selected(self.page_cache.ids)

    # ------------------------------------------------------------------
    # Membros
    # ------------------------------------------------------------------

    async def toggle_membership(self, customer_id: str) -> ToggleResult:
        """Toggle individual de um candidato carregado na lista."""
        self._ensure_open()
        candidate = self.page_cache.get(customer_id)
        if candidate is None:
            message = "Cliente nao esta na lista carregada"
            self.prompt.show_error(message)
            return ToggleResult(
                customer_id,
                ToggleOutcome.REJECTED_UNKNOWN,
                self.membership.is_member(customer_id),
                message,
            )
        try:
            return await self.engine.toggle(candidate)
        except ValidationError as e:
            self.prompt.show_error(e.message)
            return ToggleResult(
                customer_id, ToggleOutcome.REJECTED_UNKNOWN, False, e.message
            )

    async def bulk_add(self) -> BulkAddResult:
        self._ensure_open()
        try:
            return await self.engine.bulk_add()
        except ValidationError as e:
            self.prompt.show_error(e.message)
            return BulkAddResult(BulkAddOutcome.ABORTED_EMPTY, error=e.message)

    async def bulk_remove(self) -> BulkRemoveResult:
        self._ensure_open()
        try:
            return await self.engine.bulk_remove()
        except ValidationError as e:
            self.prompt.show_error(e.message)
            return BulkRemoveResult()

    async def import_customers(
        self, content: bytes, filename: str = "customers.csv"
    ) -> Optional[ImportResult]:
        """
        Importa CSV direto para o grupo aberto.

        Depois da importacao, membros e lista sao recarregados do servidor.
        """
        self._ensure_open()
        if not content:
            self.prompt.show_error("Selecione um arquivo CSV")
            return None

        try:
            result = await self.api.import_customers(content, filename, group_id=self.group_id)
        except BackendError as e:
            self.prompt.show_error(f"Erro ao importar clientes: {e.message}")
            return None

        self.prompt.show_success(f"{result.imported} cliente(s) importados")
        if result.errors:
            self.prompt.show_error(
                f"{len(result.errors)} linha(s) com erro: " + "; ".join(result.errors[:5])
            )

        await self.engine.refresh_membership()
        await self._safe_load(reload=True)
        return result
