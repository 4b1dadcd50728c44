"""
Modulo de gestao de membros (selecao de audiencia).

Estrutura:
- types: Candidato, pagina, grupo, enums
- filter_context: Filtro ativo e epocas
- page_cache: Lista paginada (scroll infinito)
- debouncer: Debounce da busca
- selection: Selecao para operacoes em lote
- membership: Membros do grupo + protocolo otimista
- reconciliation: Toggle, adicao e remocao em lote
- prompts: Interface com a UI
- session: Sessao da tela
"""
from audiencia.services.membros.debouncer import SearchDebouncer
from audiencia.services.membros.filter_context import FilterContext
from audiencia.services.membros.membership import MembershipState, OptimisticChange
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
    RemoveItemResult,
    ToggleOutcome,
    ToggleResult,
)
from audiencia.services.membros.selection import SelectionSet
from audiencia.services.membros.session import AudienceSession
from audiencia.services.membros.types import (
    Candidate,
    FilterMode,
    GroupDetail,
    ImportResult,
    Page,
    ValidationStatus,
)

__all__ = [
    "AudienceSession",
    "BulkAddOutcome",
    "BulkAddResult",
    "BulkRemoveResult",
    "Candidate",
    "FilterContext",
    "FilterMode",
    "GroupDetail",
    "ImportResult",
    "LoggingPrompt",
    "MembershipState",
    "OptimisticChange",
    "Page",
    "PageCache",
    "PageLoadResult",
    "PageLoadStatus",
    "ReconciliationEngine",
    "RemoveItemResult",
    "SearchDebouncer",
    "SelectionSet",
    "ToggleOutcome",
    "ToggleResult",
    "UserPrompt",
    "ValidationStatus",
    "should_load_more",
]
