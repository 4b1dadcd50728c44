"""
Interface abstrata com a camada de UI.

A engine nunca fala com um toolkit de tela; confirmacoes e avisos passam
por um UserPrompt. Cada tela (web, terminal, testes) implementa o seu.
"""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class UserPrompt(ABC):
    """Confirmacoes e avisos exibidos ao usuario."""

    @abstractmethod
    async def confirm(self, message: str) -> bool:
        """
        Pede confirmacao explicita.

        Args:
            message: Texto da pergunta (ja com contagens)

        Returns:
            True se o usuario confirmou
        """
        pass

    @abstractmethod
    def show_success(self, message: str) -> None:
        """Aviso de sucesso."""
        pass

    @abstractmethod
    def show_error(self, message: str) -> None:
        """Aviso de erro (validacao ou backend)."""
        pass


class LoggingPrompt(UserPrompt):
    """
    Prompt sem tela: registra avisos no log e responde confirmacoes
    com um valor fixo. Usado em scripts e jobs.
    """

    def __init__(self, auto_confirm: bool = False):
        self.auto_confirm = auto_confirm

    async def confirm(self, message: str) -> bool:
        logger.info(f"Confirmacao automatica ({self.auto_confirm}): {message}")
        return self.auto_confirm

    def show_success(self, message: str) -> None:
        logger.info(message)

    def show_error(self, message: str) -> None:
        logger.error(message)
