"""Installment-sale domain models."""

from nasiya.models.installment.contract import Contract, ContractInfo
from nasiya.models.installment.edit import ContractEdit, FieldChange, ImpactSummary
from nasiya.models.installment.enums import (
    ContractStatus,
    EmployeeRole,
    PaymentReason,
    PaymentSource,
    PaymentStatus,
    PaymentType,
)
from nasiya.models.installment.ledger import Balance, CurrencyCourse, Debtor, Note
from nasiya.models.installment.party import Customer, Employee
from nasiya.models.installment.payment import Payment

__all__ = [
    "Balance",
    "Contract",
    "ContractEdit",
    "ContractInfo",
    "ContractStatus",
    "CurrencyCourse",
    "Customer",
    "Debtor",
    "Employee",
    "EmployeeRole",
    "FieldChange",
    "ImpactSummary",
    "Note",
    "Payment",
    "PaymentReason",
    "PaymentSource",
    "PaymentStatus",
    "PaymentType",
]
