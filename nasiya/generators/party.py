"""Customer and employee generators."""

from typing import Iterator

from nasiya.generators.base import BaseGenerator
from nasiya.models import new_id
from nasiya.models.installment import Customer, Employee, EmployeeRole

_PASSPORT_LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_DISTRICTS = [
    "Chilonzor",
    "Yunusobod",
    "Sergeli",
    "Mirzo Ulug'bek",
    "Yakkasaroy",
    "Olmazor",
    "Shayxontohur",
]


class CustomerGenerator(BaseGenerator):
    """Generate synthetic installment customers."""

    def generate(self, manager_id: str | None = None) -> Customer:
        """Generate a single customer assigned to ``manager_id``."""
        return Customer(
            customer_id=new_id(),
            first_name=self.fake.first_name_male(),
            last_name=self.fake.last_name_male(),
            phone=self._phone(),
            manager_id=manager_id,
            passport_series=self.fake.bothify("??#######", letters=_PASSPORT_LETTERS),
            address=f"Toshkent, {self.random.choice(_DISTRICTS)}",
        )

    def generate_batch(self, count: int, manager_ids: list[str] | None = None) -> Iterator[Customer]:
        """Generate customers spread round-robin across ``manager_ids``.

        Parameters
        ----------
        count : int
            Number of customers to generate.
        manager_ids : list[str] | None
            Managers to assign; customers are unassigned when omitted.

        Yields
        ------
        Customer
            Generated customers.
        """
        for i in range(count):
            manager_id = manager_ids[i % len(manager_ids)] if manager_ids else None
            yield self.generate(manager_id)


class EmployeeGenerator(BaseGenerator):
    """Generate synthetic staff members."""

    def generate(self, role: EmployeeRole = EmployeeRole.MANAGER) -> Employee:
        return Employee(
            employee_id=new_id(),
            first_name=self.fake.first_name_male(),
            last_name=self.fake.last_name_male(),
            role=role,
            phone=self._phone(),
            telegram_id=str(self.random.randint(10**8, 10**10)),
        )
