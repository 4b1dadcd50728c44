"""
Utilidades para tasks assincronas.

Wrappers seguros para asyncio.create_task com error handling,
logging e contagem de falhas.
"""
import asyncio
import logging
from typing import Coroutine, Any, Optional, Callable

logger = logging.getLogger(__name__)

# Contador de falhas por tipo
_task_failures: dict[str, int] = {}


async def _safe_wrapper(
    coro: Coroutine,
    task_name: str,
    on_error: Optional[Callable[[Exception], None]] = None
) -> Any:
    """
    Wrapper que executa coroutine com error handling.

    Args:
        coro: Coroutine a executar
        task_name: Nome para logging
        on_error: Callback opcional para erros
    """
    try:
        return await coro
    except asyncio.CancelledError:
        logger.debug(f"Task cancelada: {task_name}")
        raise
    except Exception as e:
        _task_failures[task_name] = _task_failures.get(task_name, 0) + 1

        logger.error(
            f"Erro em background task '{task_name}': {e}",
            exc_info=True,
            extra={
                "task_name": task_name,
                "error_type": type(e).__name__,
                "total_failures": _task_failures[task_name]
            }
        )

        if on_error:
            try:
                on_error(e)
            except Exception as callback_error:
                logger.error(f"Erro no callback on_error: {callback_error}")

        # Nao re-raise para nao derrubar o event loop da tela
        return None


def safe_create_task(
    coro: Coroutine,
    name: Optional[str] = None,
    on_error: Optional[Callable[[Exception], None]] = None
) -> asyncio.Task:
    """
    Cria task com error handling automatico.

    Uso:
        safe_create_task(recarregar_lista(), name="busca_debounced")

    Args:
        coro: Coroutine a executar
        name: Nome da task (para logging)
        on_error: Callback opcional para quando ocorrer erro

    Returns:
        asyncio.Task com wrapper de error handling
    """
    task_name = name or (coro.__qualname__ if hasattr(coro, '__qualname__') else "unknown")
    wrapped = _safe_wrapper(coro, task_name, on_error)
    return asyncio.create_task(wrapped, name=task_name)


def get_task_failure_counts() -> dict[str, int]:
    """Retorna contagem de falhas por task."""
    return _task_failures.copy()


def reset_task_failure_counts():
    """Reseta contadores (para testes)."""
    global _task_failures
    _task_failures = {}
