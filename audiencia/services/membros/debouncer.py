"""
Debounce da busca por texto.

Cada tecla cancela o disparo agendado e agenda outro; so o ultimo texto
dentro do periodo de silencio chega a buscar. Um disparo que ja comecou
nao e cancelado (a PageCache descarta a resposta se a epoca mudou).
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

from audiencia.core.config import settings
from audiencia.core.tasks import safe_create_task

logger = logging.getLogger(__name__)


class SearchDebouncer:
    """Agrupa mudancas rapidas de texto em um unico disparo atrasado."""

    def __init__(
        self,
        callback: Callable[[str], Awaitable[None]],
        quiet_period: Optional[float] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        name: str = "busca_debounced",
    ):
        """
        Args:
            callback: Coroutine chamada com o ultimo texto
            quiet_period: Silencio em segundos (default: SEARCH_DEBOUNCE_MS)
            on_error: Chamado se o callback falhar
            name: Nome das tasks (logs e contadores de falha)
        """
        self._callback = callback
        self.quiet_period = (
            settings.search_debounce_seconds if quiet_period is None else quiet_period
        )
        self._on_error = on_error
        self._name = name
        self._pending: Optional[asyncio.Task] = None
        self._fired: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """True se existe disparo agendado que ainda nao comecou."""
        return self._pending is not None

    def on_query_changed(self, text: str) -> None:
        """Agenda busca para `text`, cancelando o agendamento anterior."""
        if self._pending is not None:
            self._pending.cancel()
            logger.debug("Debounce: agendamento anterior cancelado")

        async def _aguardar_e_disparar():
            await asyncio.sleep(self.quiet_period)
            task = asyncio.current_task()
            # A partir daqui o disparo nao pode mais ser cancelado por tecla nova
            if self._pending is task:
                self._pending = None
            self._fired.add(task)
            task.add_done_callback(self._fired.discard)
            logger.debug(f"Debounce: disparando busca '{text}'")
            await self._callback(text)

        self._pending = safe_create_task(
            _aguardar_e_disparar(), name=self._name, on_error=self._on_error
        )

    def cancel(self) -> None:
        """Cancela o disparo agendado (ex: fechamento da tela)."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    async def wait(self) -> None:
        """Aguarda o disparo agendado e os que ja estao em execucao."""
        while True:
            tasks = set(self._fired)
            if self._pending is not None:
                tasks.add(self._pending)
            tasks = {t for t in tasks if not t.done()}
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)
