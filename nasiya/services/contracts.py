"""Contract lifecycle: creation, seller approval and soft deletion."""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from nasiya.dates import add_months
from nasiya.exceptions import ForbiddenError, InvalidEntityStateError, ValidationError
from nasiya.models import Actor, new_id
from nasiya.models.installment import Contract, ContractInfo, ContractStatus, EmployeeRole
from nasiya.money import ZERO, to_money
from nasiya.services.base import BaseService

logger = logging.getLogger(__name__)

APPROVER_ROLES = frozenset({EmployeeRole.ADMIN, EmployeeRole.MODERATOR, EmployeeRole.MANAGER})


@dataclass
class NewContract:
    """Terms of a contract about to be created."""

    customer_id: str
    product_name: str
    price: Any
    initial_payment: Any
    period: int
    monthly_payment: Any
    total_price: Any
    original_price: Any = None
    percentage: Any = None
    start_date: date | None = None
    initial_payment_due_date: date | None = None
    notes: str | None = None
    info: dict[str, bool] = field(default_factory=dict)


class ContractService(BaseService):
    """Creates contracts and moves them through approval."""

    def create_contract(self, data: NewContract, actor: Actor) -> Contract:
        """Create an active contract and book its initial payment."""
        with self.store.transaction():
            contract = self._build(data, actor, is_active=True)
            if contract.initial_payment > 0:
                self._create_initial_payment(contract, actor)
            self._check_completion(contract)
        logger.info(
            "Contract %s created for customer %s: %s over %d months",
            contract.contract_id,
            contract.customer_id,
            contract.total_price,
            contract.period,
        )
        return contract

    def seller_create(self, data: NewContract, actor: Actor) -> Contract:
        """Create a contract that waits for approval before it is active."""
        with self.store.transaction():
            contract = self._build(data, actor, is_active=False)
        logger.info("Contract %s created by seller %s, awaiting approval", contract.contract_id, actor.employee_id)
        return contract

    def approve_contract(self, contract_id: str, actor: Actor) -> Contract:
        """Activate a seller's contract and book its initial payment.

        Raises
        ------
        ForbiddenError
            The actor is not an admin, moderator or manager.
        InvalidEntityStateError
            The contract is already active.
        """
        with self.store.transaction():
            employee = self._employee(actor)
            if employee.role not in APPROVER_ROLES:
                raise ForbiddenError(f"Role {employee.role.value} cannot approve contracts")
            contract = self.store.get_contract(contract_id)
            if contract.is_active:
                raise InvalidEntityStateError(f"Contract {contract_id} is already approved")

            contract.is_active = True
            contract.updated_at = self.clock()
            if contract.initial_payment > 0:
                self._create_initial_payment(contract, actor)
            self._check_completion(contract)
        logger.info("Contract %s approved by %s", contract_id, actor.employee_id)
        return contract

    def delete_contract(self, contract_id: str, actor: Actor) -> Contract:
        with self.store.transaction():
            self._employee(actor)
            contract = self.store.get_contract(contract_id)
            contract.is_deleted = True
            contract.updated_at = self.clock()
            self._clear_debtors(contract)
        logger.info("Contract %s deleted by %s", contract_id, actor.employee_id)
        return contract

    def _build(self, data: NewContract, actor: Actor, is_active: bool) -> Contract:
        self._employee(actor)
        customer = self.store.get_customer(data.customer_id)
        price = to_money(data.price)
        initial = to_money(data.initial_payment)
        monthly = to_money(data.monthly_payment)
        total = to_money(data.total_price)
        self._validate_terms(data, price, initial, monthly, total)

        start = data.start_date or self.clock().date()
        info = ContractInfo(**{k: bool(v) for k, v in data.info.items() if hasattr(ContractInfo, k)})
        contract = Contract(
            contract_id=new_id(),
            customer_id=customer.customer_id,
            product_name=data.product_name,
            original_price=to_money(data.original_price) if data.original_price is not None else price,
            price=price,
            initial_payment=initial,
            percentage=to_money(data.percentage) if data.percentage is not None else ZERO,
            period=data.period,
            monthly_payment=monthly,
            total_price=total,
            start_date=start,
            next_payment_date=add_months(start, 1),
            created_by=actor.employee_id,
            status=ContractStatus.ACTIVE,
            is_active=is_active,
            original_payment_day=start.day,
            initial_payment_due_date=data.initial_payment_due_date,
            info=info,
        )
        if data.notes:
            contract.note_id = self._write_note(customer.customer_id, data.notes, actor).note_id
        self.store.add_contract(contract)
        return contract

    @staticmethod
    def _validate_terms(
        data: NewContract,
        price: Decimal,
        initial: Decimal,
        monthly: Decimal,
        total: Decimal,
    ) -> None:
        errors = []
        if not data.product_name or not data.product_name.strip():
            errors.append({"field": "product_name", "message": "Product name is required"})
        if price < 0 or initial < 0:
            errors.append({"field": "price", "message": "Amounts cannot be negative"})
        if monthly <= 0:
            errors.append({"field": "monthly_payment", "message": "Monthly payment must be positive"})
        if not isinstance(data.period, int) or isinstance(data.period, bool) or data.period <= 0:
            errors.append({"field": "period", "message": "Period must be a positive number of months"})
        if total <= initial:
            errors.append({"field": "total_price", "message": "Total price must be greater than the initial payment"})
        if errors:
            raise ValidationError("; ".join(e["message"] for e in errors), errors=errors)
