"""Tests for demo data generators."""

from datetime import date
from decimal import Decimal

from nasiya.generators import ContractGenerator, CustomerGenerator, EmployeeGenerator
from nasiya.models.installment import EmployeeRole


class TestCustomerGenerator:
    """Tests for CustomerGenerator."""

    def test_generate_customer(self, seed: int) -> None:
        """Test customer generation."""
        customer = CustomerGenerator(seed=seed).generate("mgr-001")

        assert customer.customer_id is not None
        assert customer.first_name
        assert customer.last_name
        assert customer.phone.startswith("+998")
        assert len(customer.phone) == 13
        assert customer.manager_id == "mgr-001"
        assert len(customer.passport_series) == 9
        assert customer.address.startswith("Toshkent, ")

    def test_generate_batch_round_robin(self, seed: int) -> None:
        """Test that customers are spread across managers."""
        customers = list(CustomerGenerator(seed=seed).generate_batch(5, ["mgr-001", "mgr-002"]))

        assert len(customers) == 5
        assert [c.manager_id for c in customers] == ["mgr-001", "mgr-002", "mgr-001", "mgr-002", "mgr-001"]
        assert len({c.customer_id for c in customers}) == 5

    def test_generate_batch_unassigned(self, seed: int) -> None:
        customers = list(CustomerGenerator(seed=seed).generate_batch(2))

        assert all(c.manager_id is None for c in customers)

    def test_reproducible(self, seed: int) -> None:
        """Test that the same seed yields the same people."""
        first = CustomerGenerator(seed=seed).generate()
        second = CustomerGenerator(seed=seed).generate()

        assert first.full_name == second.full_name
        assert first.phone == second.phone


class TestEmployeeGenerator:
    """Tests for EmployeeGenerator."""

    def test_generate_employee(self, seed: int) -> None:
        employee = EmployeeGenerator(seed=seed).generate(EmployeeRole.KASSA)

        assert employee.role == EmployeeRole.KASSA
        assert employee.phone.startswith("+998")
        assert employee.telegram_id.isdigit()

    def test_default_role(self, seed: int) -> None:
        assert EmployeeGenerator(seed=seed).generate().role == EmployeeRole.MANAGER


class TestContractGenerator:
    """Tests for ContractGenerator."""

    def test_generate_terms(self, seed: int) -> None:
        """Test that generated terms are internally consistent."""
        gen = ContractGenerator(seed=seed)

        for _ in range(20):
            terms = gen.generate("cust-001", start_date=date(2026, 1, 10))

            assert terms.customer_id == "cust-001"
            assert terms.period in ContractGenerator.PERIODS
            assert terms.percentage == Decimal(ContractGenerator.MARKUP[terms.period])
            assert terms.monthly_payment > 0
            assert terms.total_price == terms.initial_payment + terms.monthly_payment * terms.period
            assert terms.total_price > terms.initial_payment
            assert terms.start_date == date(2026, 1, 10)
            assert set(terms.info) == {"box", "mbox", "receipt", "icloud"}

    def test_default_start_in_past(self, seed: int) -> None:
        terms = ContractGenerator(seed=seed).generate("cust-001")

        assert terms.start_date < date.today()

    def test_terms_accepted_by_service(self, seed: int, services, manager) -> None:
        """Test that generated terms pass contract validation."""
        terms = ContractGenerator(seed=seed).generate("cust-001", start_date=date(2026, 1, 10))

        contract = services.contracts.create_contract(terms, manager)

        assert contract.is_open
        assert contract.total_price == terms.total_price
