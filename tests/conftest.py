"""Pytest configuration and fixtures."""

from collections.abc import Callable
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any

import pytest

from nasiya.config import NasiyaConfig
from nasiya.models import Actor
from nasiya.models.installment import Contract, Customer, Employee, EmployeeRole
from nasiya.services import NewContract, Services, build_services
from nasiya.store import InstallmentStore


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: int = 0, hours: int = 0) -> None:
        self.now += timedelta(days=days, hours=hours)


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def clock() -> FrozenClock:
    """Clock frozen at the due date of the sample contract."""
    return FrozenClock(datetime(2026, 3, 15, 10, 0))


@pytest.fixture
def store() -> InstallmentStore:
    """Store seeded with staff and one customer."""
    store = InstallmentStore()
    for employee_id, role in [
        ("mgr-001", EmployeeRole.MANAGER),
        ("kassa-001", EmployeeRole.KASSA),
        ("seller-001", EmployeeRole.SELLER),
        ("admin-001", EmployeeRole.ADMIN),
    ]:
        store.add_employee(
            Employee(
                employee_id=employee_id,
                first_name="Test",
                last_name=role.value.title(),
                role=role,
            )
        )
    store.add_customer(
        Customer(
            customer_id="cust-001",
            first_name="Aziz",
            last_name="Karimov",
            phone="+998901234567",
            manager_id="mgr-001",
        )
    )
    return store


@pytest.fixture
def config() -> NasiyaConfig:
    """Default ledger configuration."""
    return NasiyaConfig()


@pytest.fixture
def services(store: InstallmentStore, config: NasiyaConfig, clock: FrozenClock) -> Services:
    """Services sharing the seeded store and frozen clock."""
    return build_services(config=config, store=store, clock=clock)


@pytest.fixture
def manager() -> Actor:
    return Actor("mgr-001", EmployeeRole.MANAGER.value)


@pytest.fixture
def kassa() -> Actor:
    return Actor("kassa-001", EmployeeRole.KASSA.value)


@pytest.fixture
def seller() -> Actor:
    return Actor("seller-001", EmployeeRole.SELLER.value)


@pytest.fixture
def contract_terms() -> Callable[..., NewContract]:
    """Factory for contract terms: 12 x 100 on a 1200 total, due on the 15th."""

    def make(**overrides: Any) -> NewContract:
        values: dict[str, Any] = {
            "customer_id": "cust-001",
            "product_name": "iPhone 15 Pro",
            "price": Decimal("1000"),
            "initial_payment": Decimal("0"),
            "period": 12,
            "monthly_payment": Decimal("100"),
            "total_price": Decimal("1200"),
            "start_date": date(2026, 2, 15),
        }
        values.update(overrides)
        return NewContract(**values)

    return make


@pytest.fixture
def make_contract(
    services: Services,
    manager: Actor,
    contract_terms: Callable[..., NewContract],
) -> Callable[..., Contract]:
    """Factory creating an active contract through the contract service."""

    def make(**overrides: Any) -> Contract:
        return services.contracts.create_contract(contract_terms(**overrides), manager)

    return make


@pytest.fixture
def contract(make_contract: Callable[..., Contract]) -> Contract:
    """Active contract next due on 2026-03-15."""
    return make_contract()
