"""In-memory data store for maintaining entity relationships."""

from nasiya.store.installment import InstallmentStore

__all__ = ["InstallmentStore"]
