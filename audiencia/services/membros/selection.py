"""
Selecao de candidatos para operacoes em lote.

Independente da lista carregada: guarda apenas ids marcados pelo usuario,
na ordem em que foram marcados.
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from audiencia.services.membros.types import Candidate

logger = logging.getLogger(__name__)


class SelectionSet:
    """Ids marcados na tela para adicionar/remover em lote."""

    def __init__(self):
        # dict preserva ordem de insercao
        self._ids: Dict[str, None] = {}

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(self._ids)

    def __contains__(self, customer_id: str) -> bool:
        return customer_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __bool__(self) -> bool:
        return bool(self._ids)

    def toggle(self, customer_id: str) -> bool:
        """Marca/desmarca. Retorna True se ficou marcado."""
        if customer_id in self._ids:
            del self._ids[customer_id]
            return False
        self._ids[customer_id] = None
        return True

    def is_all_selected(self, loaded_ids: Iterable[str]) -> bool:
        loaded_ids = list(loaded_ids)
        return bool(loaded_ids) and all(i in self._ids for i in loaded_ids)

    def select_all_loaded(self, loaded_ids: Iterable[str]) -> bool:
        """
        Alterna todos os ids carregados de uma vez.

        Se todos ja estao marcados, desmarca todos; senao marca todos.
        Chamar duas vezes devolve esses ids ao estado anterior quando
        nenhum estava marcado.

        Returns:
            True se os ids ficaram marcados
        """
        loaded_ids = list(loaded_ids)
        if self.is_all_selected(loaded_ids):
            for customer_id in loaded_ids:
                self._ids.pop(customer_id, None)
            logger.debug(f"Selecao: {len(loaded_ids)} desmarcados")
            return False

        for customer_id in loaded_ids:
            self._ids[customer_id] = None
        logger.debug(f"Selecao: {len(loaded_ids)} marcados (total={len(self._ids)})")
        return bool(loaded_ids)

    def clear(self):
        self._ids.clear()

    def partition_ready(
        self,
        lookup,
        ids: Optional[Iterable[str]] = None,
    ) -> Tuple[List[str], List[str]]:
        """
        Separa os ids selecionados entre prontos e nao prontos.

        Args:
            lookup: Funcao id -> Candidate | None (ex: PageCache.get)
            ids: Ids a avaliar (default: selecao inteira)

        Returns:
            (prontos, nao_prontos); id sem candidato carregado conta como nao pronto
        """
        ready: List[str] = []
        not_ready: List[str] = []
        for customer_id in (self._ids if ids is None else ids):
            candidate: Optional[Candidate] = lookup(customer_id)
            if candidate is not None and candidate.is_ready:
                ready.append(customer_id)
            else:
                not_ready.append(customer_id)
        return ready, not_ready
