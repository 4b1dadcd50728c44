"""
Cache de paginas da lista de candidatos (scroll infinito).

Lista append-only montada pagina a pagina a partir da busca paginada.

Regras:
- Cursor so avanca depois de uma busca com sucesso e nao vazia
- Esgotada quando a ultima pagina veio com menos itens que a capacidade
- No maximo uma busca em andamento por geracao (scroll rapido nao duplica pagina)
- Toda busca leva a geracao em que foi disparada; resposta de geracao
  antiga (apos reset ou troca de filtro) e descartada
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from audiencia.core.config import settings
from audiencia.core.exceptions import BackendError, ConfigurationError
from audiencia.services.membros.filter_context import FilterContext
from audiencia.services.membros.types import Candidate

logger = logging.getLogger(__name__)

FIRST_PAGE = 1


class PageLoadStatus(str, Enum):
    LOADED = "loaded"
    SKIPPED_EXHAUSTED = "skipped_exhausted"
    SKIPPED_IN_FLIGHT = "skipped_in_flight"
    DISCARDED_STALE = "discarded_stale"


@dataclass
class PageLoadResult:
    """Resultado de um load_next()."""

    status: PageLoadStatus
    page: Optional[int] = None
    appended: List[Candidate] = field(default_factory=list)

    @property
    def loaded(self) -> bool:
        return self.status == PageLoadStatus.LOADED


def should_load_more(
    scroll_top: float,
    client_height: float,
    scroll_height: float,
    threshold: Optional[int] = None,
) -> bool:
    """True quando o fim visivel esta a menos de `threshold` px do fim da lista."""
    if threshold is None:
        threshold = settings.SCROLL_THRESHOLD_PX
    return scroll_top + client_height >= scroll_height - threshold


class PageCache:
    """Lista acumulada de candidatos de uma epoca de filtro."""

    def __init__(self, api, filter_context: FilterContext, page_size: Optional[int] = None):
        """
        Args:
            api: Cliente com list_customers (CampaignApiClient)
            filter_context: Filtro ativo da tela
            page_size: Capacidade da pagina (default: settings.PAGE_SIZE)
        """
        page_size = page_size or settings.PAGE_SIZE
        if page_size <= 0:
            raise ConfigurationError(f"PAGE_SIZE invalido: {page_size}")

        self._api = api
        self._filter = filter_context
        self.page_size = page_size

        self._candidates: List[Candidate] = []
        self._index: Dict[str, Candidate] = {}
        self._cursor = FIRST_PAGE
        self._exhausted = False
        self._total = 0
        self._generation = 0
        self._filter_epoch = filter_context.epoch
        self._in_flight_generation: Optional[int] = None

    # ------------------------------------------------------------------
    # Leitura
    # ------------------------------------------------------------------

    @property
    def candidates(self) -> Tuple[Candidate, ...]:
        return tuple(self._candidates)

    @property
    def ids(self) -> List[str]:
        return [c.id for c in self._candidates]

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    @property
    def loading(self) -> bool:
        return self._in_flight_generation == self._generation

    @property
    def total(self) -> int:
        """Total informado pelo servidor na ultima pagina."""
        return self._total

    @property
    def generation(self) -> int:
        return self._generation

    def get(self, customer_id: str) -> Optional[Candidate]:
        return self._index.get(customer_id)

    def __len__(self) -> int:
        return len(self._candidates)

    def __contains__(self, customer_id: str) -> bool:
        return customer_id in self._index

    # ------------------------------------------------------------------
    # Transicoes
    # ------------------------------------------------------------------

    def reset(self):
        """Volta ao inicio da epoca; respostas em andamento viram obsoletas."""
        self._candidates = []
        self._index = {}
        self._cursor = FIRST_PAGE
        self._exhausted = False
        self._total = 0
        self._generation += 1
        self._filter_epoch = self._filter.epoch
        self._in_flight_generation = None
        logger.debug(f"PageCache reset: geracao {self._generation}, {self._filter!r}")

    def _sincronizar_epoca(self):
        if self._filter_epoch != self._filter.epoch:
            self.reset()

    async def load_next(self) -> PageLoadResult:
        """
        Busca a proxima pagina e acumula.

        Returns:
            PageLoadResult com status e candidatos adicionados

        Raises:
            BackendError: Falha na busca (estado acumulado fica intacto)
        """
        self._sincronizar_epoca()

        if self._exhausted:
            return PageLoadResult(PageLoadStatus.SKIPPED_EXHAUSTED)
        if self.loading:
            return PageLoadResult(PageLoadStatus.SKIPPED_IN_FLIGHT)

        generation = self._generation
        page_number = self._cursor
        self._in_flight_generation = generation

        try:
            page = await self._api.list_customers(
                page=page_number,
                page_size=self.page_size,
                **self._filter.query_params(),
            )
        except BackendError as e:
            if generation != self._generation:
                logger.info(f"Erro de pagina {page_number} da geracao {generation} ignorado (obsoleta): {e}")
                return PageLoadResult(PageLoadStatus.DISCARDED_STALE, page_number)
            logger.warning(f"Falha ao carregar pagina {page_number}: {e}")
            raise
        finally:
            if self._in_flight_generation == generation:
                self._in_flight_generation = None

        if generation != self._generation:
            logger.info(
                f"Pagina {page_number} descartada: geracao {generation} != atual {self._generation}"
            )
            return PageLoadResult(PageLoadStatus.DISCARDED_STALE, page_number)

        appended = []
        for candidate in page.candidates:
            if candidate.id in self._index:
                logger.warning(f"Candidato {candidate.id} repetido na pagina {page_number}, ignorado")
                continue
            self._index[candidate.id] = candidate
            self._candidates.append(candidate)
            appended.append(candidate)

        if len(page) > 0:
            self._cursor += 1
        self._exhausted = len(page) < self.page_size
        self._total = page.total

        logger.debug(
            f"Pagina {page_number}: +{len(appended)} candidatos "
            f"(acumulado={len(self._candidates)}, esgotada={self._exhausted})"
        )
        return PageLoadResult(PageLoadStatus.LOADED, page_number, appended)

    async def reload(self) -> PageLoadResult:
        """Reset + primeira pagina da nova epoca."""
        self.reset()
        return await self.load_next()
