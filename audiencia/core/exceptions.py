"""
Exceptions customizadas da engine de audiencia.

Validacao: rejeitada antes de qualquer chamada de rede, sem mudanca de estado.
Backend: falha de rede/API, leitura ou escrita.
"""
from typing import Optional


class AudienciaException(Exception):
    """Base exception para todos os erros do sistema."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ):
        self.message = message
        self.details = details or {}
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ExternalAPIError(AudienciaException):
    """Erro de API externa."""

    def __init__(
        self,
        message: str,
        service: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ):
        self.service = service
        super().__init__(message, details, original_error)


class BackendError(ExternalAPIError):
    """Erro da API de campanhas (rede, timeout ou resposta nao-2xx)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ):
        self.status_code = status_code
        details = dict(details or {})
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, "campaign_api", details, original_error)


class ValidationError(AudienciaException):
    """Erro de validacao local (acao viola uma regra antes de ir ao backend)."""
    pass


class ReadinessError(ValidationError):
    """Cliente nao esta pronto (telefone/WhatsApp nao validados)."""

    def __init__(self, customer_id: str, display_name: Optional[str] = None):
        self.customer_id = customer_id
        nome = display_name or customer_id
        super().__init__(
            f"{nome} nao pode entrar no grupo: telefone ou WhatsApp nao validados",
            {"customer_id": customer_id},
        )


class ToggleInFlightError(ValidationError):
    """Ja existe alteracao de membro em andamento para o mesmo cliente."""

    def __init__(self, customer_id: str):
        self.customer_id = customer_id
        super().__init__(
            "Alteracao em andamento para este cliente, aguarde",
            {"customer_id": customer_id},
        )


class SessionClosedError(AudienciaException):
    """Acao disparada em uma sessao de tela ja fechada."""

    def __init__(self, message: str = "Sessao de membros fechada"):
        super().__init__(message)


class ConfigurationError(AudienciaException):
    """Erro de configuracao do sistema."""
    pass
