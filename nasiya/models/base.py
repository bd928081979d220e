"""Base models shared across domains."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Actor:
    """Authenticated employee performing an operation.

    Authentication happens upstream; the ledger only needs the id and role.
    """

    employee_id: str
    role: str = "manager"


@dataclass
class AuditLogEntry:
    """Record of an attempted contract edit, successful or not."""

    timestamp: datetime
    user_id: str
    user_name: str
    action: str  # e.g. CONTRACT_UPDATE
    resource_type: str
    resource_id: str
    success: bool
    changes: list[dict[str, Any]] = field(default_factory=list)
    error_message: str | None = None


def new_id() -> str:
    """Random 32-character hex identifier."""
    return uuid.uuid4().hex
