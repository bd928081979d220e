"""Installment contract model."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from nasiya.models.installment.edit import ContractEdit
from nasiya.models.installment.enums import ContractStatus


@dataclass
class ContractInfo:
    """Accessories handed over with the product."""

    box: bool = False
    mbox: bool = False
    receipt: bool = False
    icloud: bool = False


@dataclass
class Contract:
    """Installment-sale agreement between a customer and the business."""

    contract_id: str
    customer_id: str
    product_name: str
    original_price: Decimal
    price: Decimal  # sale price
    initial_payment: Decimal
    percentage: Decimal  # markup, percent
    period: int  # months
    monthly_payment: Decimal
    total_price: Decimal  # principal + markup
    start_date: date
    next_payment_date: date
    created_by: str
    status: ContractStatus = ContractStatus.ACTIVE
    is_active: bool = True  # False while a seller's contract awaits approval
    is_deleted: bool = False
    previous_payment_date: date | None = None  # set only while postponed
    postponed_at: datetime | None = None
    is_postponed_once: bool = False
    original_payment_day: int | None = None
    prepaid_balance: Decimal = Decimal("0.00")
    initial_payment_due_date: date | None = None
    payments: list[str] = field(default_factory=list)
    edit_history: list[ContractEdit] = field(default_factory=list)
    info: ContractInfo = field(default_factory=ContractInfo)
    note_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_postponed(self) -> bool:
        return self.previous_payment_date is not None and self.postponed_at is not None

    @property
    def is_open(self) -> bool:
        """Active, approved and not soft-deleted."""
        return self.is_active and not self.is_deleted and self.status == ContractStatus.ACTIVE
