"""Balance, debtor and note records the ledger writes to."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal


@dataclass
class Balance:
    """Running cash total held by one manager."""

    manager_id: str
    dollar: Decimal = Decimal("0.00")
    sum: Decimal = Decimal("0.00")  # local currency
    updated_at: datetime | None = None


@dataclass
class Debtor:
    """Materialized marker for an overdue contract."""

    debtor_id: str
    contract_id: str
    debt_amount: Decimal
    due_date: date
    overdue_days: int
    created_by: str | None
    created_at: datetime | None = None


@dataclass
class Note:
    """Free-text audit trail attached to customer actions."""

    note_id: str
    text: str
    customer_id: str
    created_by: str
    created_at: datetime | None = None

    def append(self, text: str) -> None:
        self.text = f"{self.text}\n{text}" if self.text else text


@dataclass
class CurrencyCourse:
    """Exchange rate between the base and local currency."""

    name: str = "USD"
    amount: Decimal = Decimal("0")
    updated_at: datetime | None = None
