# agendrj/models.py
from dataclasses import dataclass, asdict, fields, replace
from datetime import date, datetime
from typing import Optional, Dict, Any

from .formatters import status_label

PENDING = "pending"
WAITING = "waiting"
ASSIGNED = "assigned"
IN_SERVICE = "in_service"
COMPLETED = "completed"
CANCELLED = "cancelled"

STATUSES = (PENDING, WAITING, ASSIGNED, IN_SERVICE, COMPLETED, CANCELLED)
# 'waiting' é legado e vale como 'assigned'
ACTIVE_STATUSES = frozenset({WAITING, ASSIGNED, IN_SERVICE})
TERMINAL_STATUSES = frozenset({COMPLETED, CANCELLED})
CANCELLABLE_STATUSES = frozenset({PENDING}) | ACTIVE_STATUSES

ROLES = ("user", "operator", "master")
STAFF_ROLES = frozenset({"operator", "master"})


def _iso(value) -> Optional[str]:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


@dataclass
class Appointment:
    id: str
    cpf: str
    name: str
    whatsapp: str
    birth_date: str
    location_id: str
    status: str = PENDING
    created_at: Optional[str] = None
    operator_id: Optional[str] = None
    queue_position: Optional[int] = None
    protocol: Optional[str] = None
    guardian_cpf: Optional[str] = None
    abandon_reason: Optional[str] = None
    version: int = 1

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Appointment":
        names = {f.name for f in fields(cls)}
        data = {k: _iso(v) for k, v in dict(row).items() if k in names}
        return cls(**data)

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)

    def evolve(self, **changes) -> "Appointment":
        return replace(self, **changes)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status_label"] = status_label(self.status)
        return data


@dataclass
class ServiceLocation:
    id: str
    name: str
    zip_code: str
    street: str
    number: str
    neighborhood: str
    city: str
    state: str
    complement: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ServiceLocation":
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in dict(row).items() if k in names})

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def address(self) -> str:
        parts = [f"{self.street}, {self.number}"]
        if self.complement:
            parts.append(self.complement)
        parts.append(f"{self.neighborhood} - {self.city}/{self.state}")
        return " - ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["address"] = self.address
        return data


@dataclass
class User:
    id: str
    name: str
    email: str
    role: str = "user"
    is_active: bool = True
    cpf: Optional[str] = None
    whatsapp: Optional[str] = None
    birth_date: Optional[str] = None
    password_hash: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "User":
        names = {f.name for f in fields(cls)}
        return cls(**{k: _iso(v) for k, v in dict(row).items() if k in names})

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("password_hash", None)
        return data


@dataclass
class AdminSettings:
    whatsapp_number: str = ""
    default_message: str = (
        "Olá {name}, seu agendamento foi confirmado. "
        "Seu protocolo está anexado a esta mensagem."
    )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
