"""Customers and employees referenced by contracts."""

from dataclasses import dataclass
from datetime import datetime

from nasiya.models.installment.enums import EmployeeRole


@dataclass
class Customer:
    """Buyer of a product on installment."""

    customer_id: str
    first_name: str
    last_name: str
    phone: str
    manager_id: str | None
    passport_series: str | None = None
    address: str | None = None
    created_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class Employee:
    """Staff member: seller, manager, cash office or admin."""

    employee_id: str
    first_name: str
    last_name: str
    role: EmployeeRole
    phone: str | None = None
    telegram_id: str | None = None
    created_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
