"""Ledger entry (payment) model."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from nasiya.models.installment.enums import (
    PaymentReason,
    PaymentSource,
    PaymentStatus,
    PaymentType,
)

_ZERO = Decimal("0.00")


@dataclass
class Payment:
    """One recorded money movement against a contract.

    ``expected_amount`` is what the target period called for and
    ``actual_amount`` what was really received. ``amount`` is the legacy
    base amount: the monthly installment for MONTHLY entries, the shortfall
    for EXTRA entries and the paid sum for INITIAL entries.
    """

    payment_id: str
    contract_id: str
    customer_id: str
    manager_id: str
    amount: Decimal
    expected_amount: Decimal
    actual_amount: Decimal | None
    payment_type: PaymentType
    status: PaymentStatus
    is_paid: bool
    date: datetime
    source: PaymentSource = PaymentSource.DASHBOARD
    remaining_amount: Decimal = _ZERO
    excess_amount: Decimal = _ZERO
    prepaid_amount: Decimal = _ZERO  # excess credited to the contract's prepaid balance
    target_month: str | None = None  # YYYY-MM
    linked_payment_id: str | None = None  # EXTRA -> the UNDERPAID entry it corrects
    reason: PaymentReason | None = None
    note_id: str | None = None
    confirmed_at: datetime | None = None
    confirmed_by: str | None = None
    advanced_from_date: date | None = None  # due date before an optimistic advance
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING

    @property
    def is_rejected(self) -> bool:
        return self.status == PaymentStatus.REJECTED

    @property
    def is_confirmed(self) -> bool:
        """Cash for this entry has been received and verified."""
        return self.confirmed_at is not None and not self.is_rejected

    @property
    def counted_amount(self) -> Decimal:
        """Amount this entry contributes toward the contract total."""
        if not self.is_confirmed or self.actual_amount is None:
            return _ZERO
        return self.actual_amount
