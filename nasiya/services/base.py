"""Base class for ledger services."""

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from nasiya.config import NasiyaConfig
from nasiya.dates import advance_due_date, month_key
from nasiya.models import Actor, new_id
from nasiya.models.installment import (
    Contract,
    Employee,
    Note,
    Payment,
    PaymentReason,
    PaymentSource,
    PaymentStatus,
    PaymentType,
)
from nasiya.exceptions import ValidationError
from nasiya.money import ZERO, CurrencyDetails, convert_to_local, format_money
from nasiya.services.completion import check_contract_completion
from nasiya.store import InstallmentStore

logger = logging.getLogger(__name__)


class BaseService:
    """Shared state and ledger steps for the service classes.

    Parameters
    ----------
    store : InstallmentStore
        Storage every operation reads and writes.
    config : NasiyaConfig | None
        Ledger settings (epsilon, drift cap, optimistic due dates).
    clock : Callable[[], datetime] | None
        Source of "now"; tests pass a fixed clock.
    """

    def __init__(
        self,
        store: InstallmentStore,
        config: NasiyaConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.config = config or NasiyaConfig()
        self.clock = clock or datetime.now

    @property
    def epsilon(self) -> Decimal:
        return self.config.ledger.epsilon

    def _employee(self, actor: Actor) -> Employee:
        return self.store.get_employee(actor.employee_id)

    def _write_note(self, customer_id: str, text: str, actor: Actor) -> Note:
        note = Note(
            note_id=new_id(),
            text=text,
            customer_id=customer_id,
            created_by=actor.employee_id,
            created_at=self.clock(),
        )
        self.store.add_note(note)
        return note

    def _append_note(self, note_id: str | None, text: str) -> None:
        note = self.store.get_note(note_id)
        if note is not None:
            note.append(text)

    def _advance_due_date(self, contract: Contract) -> None:
        """Move the contract to its next due month and clear any postponement."""
        old = contract.next_payment_date
        contract.next_payment_date = advance_due_date(
            contract.next_payment_date,
            contract.previous_payment_date,
            contract.original_payment_day,
        )
        self._clear_postponement(contract)
        logger.info("Contract %s next payment %s -> %s", contract.contract_id, old, contract.next_payment_date)

    def _clear_postponement(self, contract: Contract) -> None:
        contract.previous_payment_date = None
        contract.postponed_at = None

    def _exchange_rate(self) -> Decimal:
        """Local currency per base unit: the stored course, else the configured rate."""
        course = self.store.currency.amount
        return course if course > 0 else self.config.exchange_rate

    def _check_currency_details(self, amount: Decimal, details: CurrencyDetails | None) -> None:
        """Reject a cash split that does not add up to ``amount`` at the current rate."""
        if details is None:
            return
        if details.dollar < 0 or details.sum < 0:
            raise ValidationError("Currency amounts cannot be negative", errors=[{"field": "currency_details"}])
        total = details.base_total(self._exchange_rate())
        if abs(total - amount) > self.epsilon:
            raise ValidationError(
                f"Cash split {format_money(details.dollar)} + {details.sum} local "
                f"is worth {format_money(total)}, not {format_money(amount)}",
                errors=[{"field": "currency_details", "expected": str(amount), "actual": str(total)}],
            )

    def _credit_manager(self, manager_id: str, amount: Decimal) -> None:
        """Credit ``amount`` in base currency plus its local equivalent."""
        local = convert_to_local(amount, self._exchange_rate())
        balance = self.store.credit_balance(manager_id, amount, local)
        logger.info(
            "Balance of %s credited %s / %s local (now %s)",
            manager_id,
            amount,
            local,
            balance.dollar,
        )

    def _clear_debtors(self, contract: Contract) -> None:
        removed = self.store.delete_contract_debtors(contract.contract_id)
        if removed:
            logger.info("Cleared %d debtor record(s) for contract %s", removed, contract.contract_id)

    def _check_completion(self, contract: Contract) -> None:
        check_contract_completion(self.store, contract)

    def _create_initial_payment(self, contract: Contract, actor: Actor) -> Payment:
        """Record the down payment as a confirmed INITIAL entry and credit the actor."""
        now = self.clock()
        note = self._write_note(
            contract.customer_id,
            f"Initial payment {format_money(contract.initial_payment)} for {contract.product_name}",
            actor,
        )
        payment = Payment(
            payment_id=new_id(),
            contract_id=contract.contract_id,
            customer_id=contract.customer_id,
            manager_id=actor.employee_id,
            amount=contract.initial_payment,
            expected_amount=contract.initial_payment,
            actual_amount=contract.initial_payment,
            payment_type=PaymentType.INITIAL,
            status=PaymentStatus.PAID,
            is_paid=True,
            date=now,
            source=PaymentSource.DASHBOARD,
            target_month=month_key(contract.start_date),
            note_id=note.note_id,
            confirmed_at=now,
            confirmed_by=actor.employee_id,
        )
        self.store.add_payment(payment)
        contract.payments.append(payment.payment_id)
        self._credit_manager(actor.employee_id, contract.initial_payment)
        return payment

    def _create_extra_payment(
        self,
        contract: Contract,
        original: Payment,
        shortfall: Decimal,
        actor: Actor,
        text: str,
        reason: PaymentReason | None = None,
    ) -> Payment:
        """Issue a PENDING corrective entry for the shortfall of ``original``."""
        note = self._write_note(contract.customer_id, text, actor)
        extra = Payment(
            payment_id=new_id(),
            contract_id=contract.contract_id,
            customer_id=contract.customer_id,
            manager_id=original.manager_id,
            amount=shortfall,
            expected_amount=shortfall,
            actual_amount=None,
            payment_type=PaymentType.EXTRA,
            status=PaymentStatus.PENDING,
            is_paid=False,
            date=self.clock(),
            source=PaymentSource.SYSTEM,
            remaining_amount=shortfall,
            excess_amount=ZERO,
            target_month=original.target_month,
            linked_payment_id=original.payment_id,
            reason=reason,
            note_id=note.note_id,
        )
        self.store.add_payment(extra)
        contract.payments.append(extra.payment_id)
        logger.warning(
            "Contract %s: %s short for %s, corrective entry %s issued",
            contract.contract_id,
            shortfall,
            original.target_month,
            extra.payment_id,
        )
        return extra
