"""Installment portfolio scenario driving real ledger operations."""

from __future__ import annotations

import logging
import random
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Any

from nasiya.config import NasiyaConfig
from nasiya.dates import add_months
from nasiya.generators import ContractGenerator, CustomerGenerator, EmployeeGenerator
from nasiya.models import Actor
from nasiya.models.installment import Contract, EmployeeRole, PaymentSource, PaymentStatus
from nasiya.money import quantize
from nasiya.services import Services, build_services
from nasiya.store import InstallmentStore

logger = logging.getLogger(__name__)


class InstallmentPortfolioScenario:
    """Generate a portfolio of contracts with realistic payment behavior.

    This scenario creates:
    - Managers, a cash-office employee and customers
    - One or two contracts per customer, started 1-6 months ago
    - One payment event per elapsed month, chosen from:
        - Exact dashboard payments
        - Partial payments (with a later top-up for some)
        - Overpayments feeding the prepaid balance
        - Bot payments that the cash office confirms or rejects
        - Postponements and skipped months (future debtors)
    - A final debtor sweep at the scenario's "today"
    """

    def __init__(
        self,
        num_customers: int = 20,
        num_managers: int = 3,
        on_time_rate: float = 0.55,
        partial_rate: float = 0.12,
        overpaid_rate: float = 0.08,
        bot_rate: float = 0.12,
        postpone_rate: float = 0.05,
        seed: int | None = None,
        *,
        config: NasiyaConfig | None = None,
        today: datetime | None = None,
    ) -> None:
        """Initialize the scenario.

        Parameters
        ----------
        num_customers : int
            Number of customers to generate.
        num_managers : int
            Number of managers customers are spread across.
        on_time_rate, partial_rate, overpaid_rate, bot_rate, postpone_rate : float
            Share of monthly events of each kind; the rest are skipped months.
        seed : int | None
            Random seed for reproducibility.
        config : NasiyaConfig | None
            Ledger configuration for the services.
        today : datetime | None
            End of the simulated timeline (defaults to now).
        """
        self.num_customers = num_customers
        self.num_managers = max(1, num_managers)
        self.rates = {
            "on_time": on_time_rate,
            "partial": partial_rate,
            "overpaid": overpaid_rate,
            "bot": bot_rate,
            "postpone": postpone_rate,
        }
        self.seed = seed
        self.random = random.Random(seed)
        self.today = today or datetime.now()
        self._now = self.today

        self.services: Services = build_services(config=config, clock=lambda: self._now)
        self.store: InstallmentStore = self.services.store
        self._customer_gen = CustomerGenerator(seed=seed)
        self._employee_gen = EmployeeGenerator(seed=seed)
        self._contract_gen = ContractGenerator(seed=seed)
        self._cashier: Actor | None = None

    def generate(self) -> InstallmentStore:
        """Generate all data for the portfolio.

        Returns
        -------
        InstallmentStore
            Store containing the generated ledger.
        """
        logger.info("Starting installment portfolio scenario: %d customers", self.num_customers)
        self.store.currency.amount = self.services.config.exchange_rate

        managers = [self._add_employee(EmployeeRole.MANAGER) for _ in range(self.num_managers)]
        self._cashier = self._add_employee(EmployeeRole.KASSA)

        for customer in self._customer_gen.generate_batch(
            self.num_customers, [m.employee_id for m in managers]
        ):
            self.store.add_customer(customer)
            manager = Actor(customer.manager_id, EmployeeRole.MANAGER.value)
            for _ in range(self.random.choice([1, 1, 2])):
                start = add_months(self.today.date(), -self.random.randint(1, 6))
                terms = self._contract_gen.generate(customer.customer_id, start_date=start)
                self._now = datetime.combine(start, time(10, 0))
                contract = self.services.contracts.create_contract(terms, manager)
                self._simulate_payments(contract, manager)

        self._now = self.today
        result = self.services.debtors.run_sweep(self.today)
        logger.info(
            "Generated %d contracts with %d ledger entries; sweep: %s",
            len(self.store.contracts),
            len(self.store.payments),
            result,
        )
        return self.store

    def _add_employee(self, role: EmployeeRole) -> Actor:
        employee = self._employee_gen.generate(role)
        self.store.add_employee(employee)
        return Actor(employee.employee_id, role.value)

    def _simulate_payments(self, contract: Contract, manager: Actor) -> None:
        """Play one payment event per due month that has already passed."""
        while contract.next_payment_date < self.today.date() and contract.is_open:
            due = contract.next_payment_date
            self._now = datetime.combine(due, time(12, 0)) - timedelta(days=self.random.randint(0, 3))
            event = self._pick_event()
            monthly = contract.monthly_payment

            if event == "skip":
                return
            if event == "postpone":
                new_date = due + timedelta(days=self.random.randint(5, 20))
                if new_date >= self.today.date():
                    return
                self.services.postponement.postpone_payment(
                    contract.contract_id, new_date, "Customer asked for more time", manager
                )
                self._now = datetime.combine(new_date, time(12, 0))
                self.services.payments.receive_payment(contract.contract_id, monthly, manager)
            elif event == "partial":
                amount = quantize(monthly * Decimal(self.random.randint(50, 90)) / 100)
                receipt = self.services.payments.receive_payment(contract.contract_id, amount, manager)
                if receipt.extra_payment_id and self.random.random() < 0.5:
                    self.services.payments.pay_remaining(
                        receipt.extra_payment_id, receipt.remaining_amount, manager
                    )
            elif event == "overpaid":
                amount = quantize(monthly * Decimal(self.random.randint(110, 150)) / 100)
                self.services.payments.receive_payment(contract.contract_id, amount, manager)
            elif event == "bot":
                receipt = self.services.payments.receive_payment(
                    contract.contract_id, monthly, manager, source=PaymentSource.BOT
                )
                roll = self.random.random()
                if roll < 0.8:
                    self.services.cash.confirm_payment(receipt.payment_id, self._cashier)
                elif roll < 0.9:
                    self.services.cash.reject_payment(receipt.payment_id, "Cash not received", self._cashier)
                    return
                else:
                    return  # left PENDING for the cash office
            else:
                self.services.payments.receive_payment(contract.contract_id, monthly, manager)

    def _pick_event(self) -> str:
        roll = self.random.random()
        cumulative = 0.0
        for name, rate in self.rates.items():
            cumulative += rate
            if roll < cumulative:
                return name
        return "skip"

    def export(self, sinks: list[Any]) -> None:
        """Export the ledger to sinks.

        Parameters
        ----------
        sinks : list[Any]
            Sink instances (JsonFileSink, ConsoleSink).
        """
        snapshot = self.store.snapshot()
        for sink in sinks:
            for entity_type, records in snapshot.items():
                sink.write_batch(entity_type, records)

        logger.info("Exported installment portfolio to %d sinks", len(sinks))

    def get_portfolio_summary(self) -> dict[str, Any]:
        """Get summary statistics for the portfolio.

        Returns
        -------
        dict[str, Any]
            Portfolio summary statistics.
        """
        records = self.store.snapshot()
        contracts = records["contracts"]
        if not contracts:
            return {}

        status_counts: dict[str, int] = {}
        for contract in contracts:
            status_counts[contract.status.value] = status_counts.get(contract.status.value, 0) + 1

        payment_status: dict[str, int] = {}
        for payment in records["payments"]:
            payment_status[payment.status.value] = payment_status.get(payment.status.value, 0) + 1

        return {
            "total_contracts": len(contracts),
            "total_value": str(sum(c.total_price for c in contracts)),
            "prepaid_total": str(sum(c.prepaid_balance for c in contracts)),
            "contract_status_distribution": status_counts,
            "payment_status_distribution": payment_status,
            "pending_payments": sum(
                1 for p in records["payments"] if p.status == PaymentStatus.PENDING
            ),
            "debtors": len(records["debtors"]),
            "postponed_contracts": sum(1 for c in contracts if c.is_postponed_once),
        }
