"""
Estado de membros do grupo alvo.

Fonte de verdade: GET /groups/{id}. Fora da janela otimista de um toggle,
o conjunto so muda por substituicao completa (refresh).

Protocolo otimista por cliente:
    change = state.begin(id, member=True)   # snapshot + aplica
    ... chamada ao backend ...
    state.commit(change)  ou  state.rollback(change)

O rollback restaura o valor anterior daquele id, sem reconstruir a
operacao inversa, e nao mexe em outros ids com toggle em andamento.
"""
import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Set

from audiencia.core.exceptions import BackendError, ToggleInFlightError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptimisticChange:
    """Mudanca otimista de um cliente, com o valor anterior."""

    customer_id: str
    previous: bool
    desired: bool
    group_id: Optional[str]
    target_generation: int


class MembershipState:
    """Ids que pertencem ao grupo alvo."""

    def __init__(self, group_id: Optional[str] = None, member_ids: Iterable[str] = ()):
        self.group_id = group_id
        self._members: Set[str] = set(member_ids)
        self._in_flight: Set[str] = set()
        self.loaded = False
        # Incrementa a cada troca de grupo; respostas antigas sao descartadas
        self._target_generation = 0

    @property
    def member_ids(self) -> FrozenSet[str]:
        return frozenset(self._members)

    def __contains__(self, customer_id: str) -> bool:
        return customer_id in self._members

    def __len__(self) -> int:
        return len(self._members)

    def is_member(self, customer_id: str) -> bool:
        return customer_id in self._members

    def in_flight(self, customer_id: str) -> bool:
        return customer_id in self._in_flight

    def retarget(self, group_id: Optional[str]):
        """Aponta para outro grupo; membros ficam vazios ate o proximo refresh."""
        self.group_id = group_id
        self._members = set()
        self._in_flight = set()
        self.loaded = False
        self._target_generation += 1

    def replace(self, member_ids: Iterable[str]):
        """Substitui o conjunto inteiro (reconciliacao com o servidor)."""
        self._members = set(member_ids)
        self.loaded = True

    def _set(self, customer_id: str, member: bool):
        if member:
            self._members.add(customer_id)
        else:
            self._members.discard(customer_id)

    def begin(self, customer_id: str, member: bool) -> OptimisticChange:
        """
        Aplica a mudanca otimista e devolve o snapshot para commit/rollback.

        Raises:
            ToggleInFlightError: Ja existe mudanca em andamento para o id
        """
        if customer_id in self._in_flight:
            raise ToggleInFlightError(customer_id)

        change = OptimisticChange(
            customer_id=customer_id,
            previous=customer_id in self._members,
            desired=member,
            group_id=self.group_id,
            target_generation=self._target_generation,
        )
        self._in_flight.add(customer_id)
        self._set(customer_id, member)
        return change

    def commit(self, change: OptimisticChange):
        if change.target_generation == self._target_generation:
            self._in_flight.discard(change.customer_id)

    def rollback(self, change: OptimisticChange):
        """Restaura o valor anterior do id (somente se o grupo nao mudou)."""
        if change.target_generation != self._target_generation:
            return
        self._in_flight.discard(change.customer_id)
        self._set(change.customer_id, change.previous)
        logger.info(
            f"Rollback de {change.customer_id}: "
            f"{'membro' if change.previous else 'nao membro'}"
        )

    async def refresh(self, api) -> bool:
        """
        Recarrega os membros do grupo e substitui o estado.

        Ultima resposta a chegar vence. Resposta de um grupo que nao e mais
        o alvo e descartada.

        Returns:
            True se aplicou, False se descartou

        Raises:
            BackendError: Falha na leitura (estado atual fica intacto)
        """
        group_id = self.group_id
        generation = self._target_generation
        if not group_id:
            return False

        try:
            group = await api.get_group(group_id)
        except BackendError as e:
            logger.warning(f"Falha ao recarregar membros do grupo {group_id}: {e}")
            raise

        if generation != self._target_generation:
            logger.info(f"Membros do grupo {group_id} descartados: alvo mudou para {self.group_id}")
            return False

        self.replace(group.member_ids)
        logger.debug(f"Grupo {group_id}: {len(self._members)} membros")
        return True
