"""Request bodies for the REST layer."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from nasiya.models.installment import PaymentSource
from nasiya.money import CurrencyDetails

Amount = Decimal | str


class CurrencyDetailsBody(BaseModel):
    dollar: Decimal = Decimal("0")
    sum: Decimal = Decimal("0")

    def to_domain(self) -> CurrencyDetails:
        return CurrencyDetails(dollar=self.dollar, sum=self.sum)


class ReceivePaymentRequest(BaseModel):
    contract_id: str
    amount: Amount
    source: PaymentSource = PaymentSource.DASHBOARD
    notes: str | None = None
    currency_details: CurrencyDetailsBody | None = None
    target_month: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}$")


class PayRemainingRequest(BaseModel):
    amount: Amount
    notes: str | None = None
    currency_details: CurrencyDetailsBody | None = None


class PayAllRequest(BaseModel):
    contract_id: str
    amount: Amount
    notes: str | None = None


class RejectPaymentRequest(BaseModel):
    reason: str = Field(min_length=1)


class ConfirmBatchRequest(BaseModel):
    payment_ids: list[str]


class PostponeRequest(BaseModel):
    new_date: date
    reason: str | None = None


class ContractInfoBody(BaseModel):
    box: bool = False
    mbox: bool = False
    receipt: bool = False
    icloud: bool = False


class CreateContractRequest(BaseModel):
    customer_id: str
    product_name: str
    price: Amount
    initial_payment: Amount = Decimal("0")
    period: int
    monthly_payment: Amount
    total_price: Amount
    original_price: Amount | None = None
    percentage: Amount | None = None
    start_date: date | None = None
    initial_payment_due_date: date | None = None
    notes: str | None = None
    info: ContractInfoBody = Field(default_factory=ContractInfoBody)


class UpdateContractRequest(BaseModel):
    """Only fields that are sent are edited."""

    product_name: str | None = None
    original_price: Amount | None = None
    price: Amount | None = None
    percentage: Amount | None = None
    period: int | None = None
    monthly_payment: Amount | None = None
    initial_payment: Amount | None = None
    total_price: Amount | None = None
    notes: str | None = None
    info: ContractInfoBody | None = None
