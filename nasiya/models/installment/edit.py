"""Contract edit history models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class FieldChange:
    """Before/after of one edited contract field."""

    field: str
    old_value: Decimal
    new_value: Decimal

    @property
    def difference(self) -> Decimal:
        return self.new_value - self.old_value


@dataclass
class ImpactSummary:
    """Outcome of re-deriving paid entries against new contract terms."""

    underpaid_count: int = 0
    overpaid_count: int = 0
    total_shortage: Decimal = Decimal("0.00")
    total_excess: Decimal = Decimal("0.00")
    additional_payments_created: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "underpaid_count": self.underpaid_count,
            "overpaid_count": self.overpaid_count,
            "total_shortage": self.total_shortage,
            "total_excess": self.total_excess,
            "additional_payments_created": self.additional_payments_created,
        }


@dataclass(frozen=True)
class ContractEdit:
    """Immutable edit-history entry appended to a contract."""

    date: datetime
    edited_by: str
    changes: tuple[FieldChange, ...]
    affected_payments: tuple[str, ...]
    impact_summary: ImpactSummary = field(default_factory=ImpactSummary)
