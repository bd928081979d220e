"""Domain models for installment sales."""

from nasiya.models.base import Actor, AuditLogEntry, new_id

__all__ = ["Actor", "AuditLogEntry", "new_id"]
