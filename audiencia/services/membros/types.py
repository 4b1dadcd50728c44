"""
Tipos e enums da gestao de membros de grupos.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class ValidationStatus(str, Enum):
    """Status de validacao de telefone/WhatsApp (calculado no backend)."""

    PENDING = "pending"
    VALID = "valid"
    INVALID = "invalid"


class FilterMode(str, Enum):
    """Modo de filtro da lista de candidatos."""

    ALL = "all"
    MEMBER = "member"
    NON_MEMBER = "non_member"

    @property
    def depends_on_membership(self) -> bool:
        """True quando a visibilidade do candidato depende de ser membro."""
        return self is not FilterMode.ALL


def _parse_status(raw: Optional[str]) -> ValidationStatus:
    try:
        return ValidationStatus(raw)
    except ValueError:
        return ValidationStatus.PENDING


@dataclass(frozen=True)
class Candidate:
    """Cliente como visto na tela de selecao de audiencia."""

    id: str
    phone: str
    full_name: Optional[str] = None
    company: Optional[str] = None
    phone_valid: ValidationStatus = ValidationStatus.PENDING
    whatsapp_exists: ValidationStatus = ValidationStatus.PENDING
    is_ready: bool = False

    @property
    def display_name(self) -> str:
        return self.full_name or self.phone

    @classmethod
    def from_dict(cls, data: dict) -> "Candidate":
        """
        Cria a partir do JSON da API.

        is_ready vem calculado do backend e nunca e recalculado aqui.
        """
        return cls(
            id=str(data["id"]),
            phone=data.get("phone", ""),
            full_name=data.get("full_name") or None,
            company=data.get("company") or None,
            phone_valid=_parse_status(data.get("phone_valid")),
            whatsapp_exists=_parse_status(data.get("whatsapp_exists")),
            is_ready=bool(data.get("is_ready", False)),
        )


@dataclass
class Page:
    """Resultado de uma busca paginada."""

    candidates: List[Candidate] = field(default_factory=list)
    total: int = 0

    def __len__(self) -> int:
        return len(self.candidates)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Page":
        if not data:
            return cls()
        return cls(
            candidates=[Candidate.from_dict(row) for row in (data.get("customers") or [])],
            total=data.get("total") or 0,
        )


@dataclass
class GroupDetail:
    """Detalhe de um grupo; fonte de verdade dos membros."""

    id: str
    name: str = ""
    description: Optional[str] = None
    member_ids: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "GroupDetail":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            description=data.get("description"),
            member_ids=tuple(str(c["id"]) for c in (data.get("customers") or [])),
        )


@dataclass
class ImportResult:
    """Resultado da importacao de CSV."""

    imported: int = 0
    errors: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ImportResult":
        if not data:
            return cls()
        return cls(
            imported=data.get("imported") or 0,
            errors=list(data.get("errors") or []),
        )
