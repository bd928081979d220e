"""Enumeration types for installment-sale entities."""

from enum import Enum


class ContractStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    UNDERPAID = "UNDERPAID"
    OVERPAID = "OVERPAID"
    REJECTED = "REJECTED"


class PaymentType(str, Enum):
    INITIAL = "INITIAL"
    MONTHLY = "MONTHLY"
    EXTRA = "EXTRA"


class PaymentSource(str, Enum):
    BOT = "BOT"  # manager in the field, needs cash-office confirmation
    DASHBOARD = "DASHBOARD"  # cash office, self-confirming
    SYSTEM = "SYSTEM"  # generated by an edit or contract creation


class PaymentReason(str, Enum):
    MONTHLY_PAYMENT_INCREASE = "MONTHLY_PAYMENT_INCREASE"
    MONTHLY_PAYMENT_DECREASE = "MONTHLY_PAYMENT_DECREASE"
    INITIAL_PAYMENT_CHANGE = "INITIAL_PAYMENT_CHANGE"
    TOTAL_PRICE_CHANGE = "TOTAL_PRICE_CHANGE"


class EmployeeRole(str, Enum):
    ADMIN = "admin"
    MODERATOR = "moderator"
    MANAGER = "manager"
    SELLER = "seller"
    KASSA = "kassa"
