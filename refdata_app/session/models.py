"""Session value objects and field validation results."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Mapping, Optional


class FieldStatus(Enum):
    """Outcome of checking one session field."""
    VALID = "valid"
    INVALID = "invalid"
    EXPIRED = "expired"
    MISSING = "missing"


@dataclass(frozen=True)
class SessionField:
    """One named credential inside a session, with its expiry when known."""
    name: str
    value: str
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class Session:
    """
    Validated credential blob used to authenticate fetch calls.

    Immutable: a refresh replaces the cached instance, it never edits one.
    """
    raw_value: str
    acquired_at: datetime
    fields: Mapping[str, SessionField] = field(default_factory=dict)

    def get(self, name: str) -> Optional[SessionField]:
        return self.fields.get(name)

    @property
    def masked(self) -> str:
        return mask_session_value(self.raw_value)


@dataclass(frozen=True)
class FieldCheck:
    """Validation result for a single session field."""
    status: FieldStatus
    message: str
    expires_at: Optional[datetime] = None

    @property
    def is_valid(self) -> bool:
        return self.status is FieldStatus.VALID

    @classmethod
    def valid(cls, expires_at: Optional[datetime] = None) -> "FieldCheck":
        return cls(FieldStatus.VALID, "Valid", expires_at)

    @classmethod
    def invalid(cls, reason: str) -> "FieldCheck":
        return cls(FieldStatus.INVALID, reason)

    @classmethod
    def expired(cls, expires_at: datetime) -> "FieldCheck":
        return cls(FieldStatus.EXPIRED, f"Expired at {expires_at.isoformat()}", expires_at)

    @classmethod
    def missing(cls) -> "FieldCheck":
        return cls(FieldStatus.MISSING, "Missing")


def mask_session_value(raw_value: Optional[str]) -> Optional[str]:
    """Replace every value in a ``name=value; ...`` string with ``*****``."""
    if raw_value is None:
        return None

    masked = []
    for part in raw_value.split(";"):
        part = part.strip()
        if not part:
            continue
        name = part.split("=", 1)[0].strip()
        masked.append(f"{name}=*****")
    return "; ".join(masked)
