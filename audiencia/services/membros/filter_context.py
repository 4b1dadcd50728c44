"""
Contexto de filtro da lista de candidatos.

Cada mudanca real (texto, modo ou grupo) abre uma nova epoca; a PageCache
compara a epoca para saber que precisa descartar o que acumulou.
"""
import logging
from typing import Optional

from audiencia.core.exceptions import ValidationError
from audiencia.services.membros.types import FilterMode

logger = logging.getLogger(__name__)


class FilterContext:
    """(texto de busca x modo de filtro x grupo dono) ativo na tela."""

    def __init__(
        self,
        group_id: Optional[str] = None,
        mode: FilterMode = FilterMode.ALL,
        search: str = "",
    ):
        if mode.depends_on_membership and not group_id:
            raise ValidationError(f"Filtro '{mode.value}' exige um grupo")
        self._group_id = group_id
        self._mode = mode
        self._search = search.strip()
        self._epoch = 0

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def search(self) -> str:
        return self._search

    @property
    def mode(self) -> FilterMode:
        return self._mode

    @property
    def group_id(self) -> Optional[str]:
        return self._group_id

    def _nova_epoca(self, motivo: str):
        self._epoch += 1
        logger.debug(f"Filtro: nova epoca {self._epoch} ({motivo})")

    def set_search(self, text: str) -> bool:
        """Troca o texto de busca. Retorna True se abriu nova epoca."""
        text = (text or "").strip()
        if text == self._search:
            return False
        self._search = text
        self._nova_epoca("busca")
        return True

    def set_mode(self, mode: FilterMode) -> bool:
        """Troca o modo de filtro. Retorna True se abriu nova epoca."""
        if mode == self._mode:
            return False
        if mode.depends_on_membership and not self._group_id:
            raise ValidationError(f"Filtro '{mode.value}' exige um grupo")
        self._mode = mode
        self._nova_epoca("modo")
        return True

    def set_group(self, group_id: Optional[str]) -> bool:
        """
        Aponta o filtro para outro grupo.

        Sem grupo, um filtro dependente de membros volta para ALL.
        """
        if group_id == self._group_id:
            return False
        self._group_id = group_id
        if not group_id and self._mode.depends_on_membership:
            self._mode = FilterMode.ALL
        self._nova_epoca("grupo")
        return True

    def query_params(self) -> dict:
        """Parametros de filtro para a busca paginada (sem page/page_size)."""
        params = {"search": self._search}
        if self._mode.depends_on_membership:
            params["filter_group_id"] = self._group_id
            params["filter_type"] = self._mode
        return params

    def __repr__(self) -> str:
        return (
            f"FilterContext(epoch={self._epoch}, search={self._search!r}, "
            f"mode={self._mode.value}, group_id={self._group_id!r})"
        )
