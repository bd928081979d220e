"""Payment reconciliation: intake, shortfall settlement and history."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from nasiya.dates import advance_due_date, month_key
from nasiya.exceptions import ValidationError
from nasiya.models import Actor, new_id
from nasiya.models.installment import (
    Contract,
    ContractStatus,
    Payment,
    PaymentSource,
    PaymentStatus,
    PaymentType,
)
from nasiya.money import ZERO, CurrencyDetails, format_money, is_zero, quantize, to_money
from nasiya.services.base import BaseService
from nasiya.services.classification import classify
from nasiya.services.completion import total_paid

logger = logging.getLogger(__name__)


@dataclass
class PaymentReceipt:
    """Outcome of a received payment."""

    payment_id: str
    contract_id: str
    status: PaymentStatus
    expected_amount: Decimal
    actual_amount: Decimal
    remaining_amount: Decimal
    excess_amount: Decimal
    prepaid_balance: Decimal
    next_payment_date: date
    contract_status: ContractStatus
    message: str
    is_pending: bool
    extra_payment_id: str | None = None


@dataclass
class ContractSummary:
    """Paid-to-date view of a contract."""

    contract_id: str
    total_price: Decimal
    total_paid: Decimal
    prepaid_balance: Decimal
    remaining_debt: Decimal
    paid_months: int
    period: int
    monthly_payment: Decimal
    next_payment_date: date
    status: ContractStatus
    is_postponed: bool
    outstanding_shortfall: Decimal


class PaymentService(BaseService):
    """Receives payments and keeps contract, balance and debtors consistent."""

    def receive_payment(
        self,
        contract_id: str,
        amount: Any,
        actor: Actor,
        source: PaymentSource = PaymentSource.DASHBOARD,
        notes: str | None = None,
        currency_details: CurrencyDetails | None = None,
        target_month: str | None = None,
    ) -> PaymentReceipt:
        """Record a payment against the contract's monthly installment.

        Dashboard payments are confirmed on the spot: the due date advances,
        debtors are cleared and the manager balance is credited. Bot payments
        wait as PENDING for the cash office.

        Parameters
        ----------
        contract_id : str
            Contract being paid.
        amount : Any
            Amount received; parsed with :func:`nasiya.money.to_money`.
        actor : Actor
            Employee recording the payment.
        source : PaymentSource
            ``BOT`` for self-reported payments, ``DASHBOARD`` for cash in hand.
        notes : str | None
            Free text appended to the payment note.
        currency_details : CurrencyDetails | None
            Split of the handed-over cash by currency; must be worth
            ``amount`` at the current exchange rate.
        target_month : str | None
            ``YYYY-MM`` the payment is for; defaults to the current due month.

        Raises
        ------
        ValidationError
            Non-positive amount, a cash split that does not match it, or a
            contract that is not approved.
        EntityNotFoundError
            Unknown contract or employee.
        """
        actual = to_money(amount)
        if actual <= 0:
            raise ValidationError("Payment amount must be greater than zero")
        self._check_currency_details(actual, currency_details)

        with self.store.transaction():
            contract = self.store.get_contract(contract_id)
            if not contract.is_active:
                raise ValidationError(f"Contract {contract_id} is awaiting approval")
            self._employee(actor)

            expected = contract.monthly_payment
            result = classify(expected, actual, self.epsilon)
            pending = source == PaymentSource.BOT
            now = self.clock()

            text = self._intake_message(expected, actual, result.status, result.remaining, result.excess)
            if currency_details is not None:
                text = f"{text}\nCash: {format_money(currency_details.dollar)} + {currency_details.sum} local"
            if notes:
                text = f"{notes}\n{text}"
            note = self._write_note(contract.customer_id, text, actor)

            payment = Payment(
                payment_id=new_id(),
                contract_id=contract.contract_id,
                customer_id=contract.customer_id,
                manager_id=actor.employee_id,
                amount=expected,
                expected_amount=expected,
                actual_amount=actual,
                payment_type=PaymentType.MONTHLY,
                status=PaymentStatus.PENDING if pending else result.status,
                is_paid=not pending,
                date=now,
                source=source,
                remaining_amount=result.remaining,
                excess_amount=result.excess,
                target_month=target_month or month_key(contract.next_payment_date),
                note_id=note.note_id,
                confirmed_at=None if pending else now,
                confirmed_by=None if pending else actor.employee_id,
            )
            if result.is_overpaid:
                payment.prepaid_amount = result.excess
                contract.prepaid_balance = quantize(contract.prepaid_balance + result.excess)
            self.store.add_payment(payment)
            contract.payments.append(payment.payment_id)

            extra = None
            if result.is_underpaid:
                extra = self._create_extra_payment(
                    contract,
                    payment,
                    result.remaining,
                    actor,
                    f"Underpaid {payment.target_month}: {format_money(result.remaining)} outstanding",
                )

            if pending:
                if self.config.ledger.optimistic_due_date:
                    payment.advanced_from_date = contract.next_payment_date
                    contract.next_payment_date = advance_due_date(
                        contract.next_payment_date,
                        contract.previous_payment_date,
                        contract.original_payment_day,
                    )
            else:
                self._advance_due_date(contract)
                if not result.is_underpaid:
                    self._clear_debtors(contract)
                self._credit_manager(actor.employee_id, actual)

            contract.updated_at = now
            self._check_completion(contract)

        logger.info(
            "Payment %s on contract %s: %s expected %s received %s (%s)",
            payment.payment_id,
            contract_id,
            result.status.value,
            expected,
            actual,
            source.value,
        )
        return PaymentReceipt(
            payment_id=payment.payment_id,
            contract_id=contract_id,
            status=payment.status,
            expected_amount=expected,
            actual_amount=actual,
            remaining_amount=result.remaining,
            excess_amount=result.excess,
            prepaid_balance=contract.prepaid_balance,
            next_payment_date=contract.next_payment_date,
            contract_status=contract.status,
            message=text,
            is_pending=pending,
            extra_payment_id=extra.payment_id if extra else None,
        )

    def pay_remaining(
        self,
        payment_id: str,
        amount: Any,
        actor: Actor,
        notes: str | None = None,
        currency_details: CurrencyDetails | None = None,
    ) -> Payment:
        """Settle (part of) the shortfall of an UNDERPAID entry.

        ``payment_id`` may name the UNDERPAID entry or its corrective EXTRA
        entry. The cash is booked on the EXTRA entry; once nothing remains
        both entries become PAID and the contract's debtors are cleared.

        Returns
        -------
        Payment
            The corrective entry carrying the settlement.
        """
        paid = to_money(amount)
        if paid <= 0:
            raise ValidationError("Payment amount must be greater than zero")
        self._check_currency_details(paid, currency_details)

        with self.store.transaction():
            original, extra = self._resolve_shortfall(payment_id)
            contract = self.store.get_contract(original.contract_id)
            self._employee(actor)

            remaining = original.remaining_amount
            if paid > remaining + self.epsilon:
                raise ValidationError(
                    f"Amount {paid} exceeds the outstanding {remaining}",
                    errors=[{"field": "amount", "max": str(remaining)}],
                )

            now = self.clock()
            left = quantize(remaining - paid)
            if is_zero(left, self.epsilon) or left < 0:
                left = ZERO

            extra.actual_amount = quantize((extra.actual_amount or ZERO) + paid)
            extra.confirmed_at = now
            extra.confirmed_by = actor.employee_id
            extra.remaining_amount = left
            extra.updated_at = now
            original.remaining_amount = left
            original.updated_at = now

            text = f"Paid {format_money(paid)} toward {original.target_month} shortfall"
            if notes:
                text = f"{text}: {notes}"
            self._append_note(extra.note_id, text)

            if left == ZERO:
                extra.status = PaymentStatus.PAID
                extra.is_paid = True
                original.status = PaymentStatus.PAID
                original.is_paid = True
                self._clear_debtors(contract)
                logger.info("Shortfall of payment %s settled", original.payment_id)
            else:
                extra.status = PaymentStatus.UNDERPAID
                logger.info("Payment %s still %s short", original.payment_id, left)

            self._credit_manager(actor.employee_id, paid)
            contract.updated_at = now
            self._check_completion(contract)
        return extra

    def pay_all_remaining_months(
        self,
        contract_id: str,
        amount: Any,
        actor: Actor,
        notes: str | None = None,
    ) -> list[PaymentReceipt]:
        """Split ``amount`` evenly over the unpaid months and book each one."""
        total = to_money(amount)
        if total <= 0:
            raise ValidationError("Payment amount must be greater than zero")

        with self.store.transaction():
            contract = self.store.get_contract(contract_id)
            months = contract.period - self._paid_months(contract)
            if months <= 0:
                raise ValidationError(f"Contract {contract_id} has no unpaid months")

            share = quantize(total / months)
            shares = [share] * (months - 1) + [quantize(total - share * (months - 1))]
            receipts = []
            for i, value in enumerate(shares, start=1):
                receipts.append(
                    self.receive_payment(
                        contract_id,
                        value,
                        actor,
                        source=PaymentSource.DASHBOARD,
                        notes=notes or f"Bulk payment {i}/{months}",
                    )
                )
        logger.info("Booked %d remaining months on contract %s", months, contract_id)
        return receipts

    def get_payment_history(
        self,
        customer_id: str | None = None,
        contract_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """Confirmed entries, newest first, with customer, manager and note."""
        if contract_id is not None:
            payments = self.store.get_contract_payments(contract_id)
        elif customer_id is not None:
            payments = [
                p
                for c in self.store.get_customer_contracts(customer_id)
                for p in self.store.get_contract_payments(c.contract_id)
            ]
        else:
            payments = self.store.get_all_payments()

        history = []
        for p in payments:
            if not p.is_confirmed:
                continue
            customer = self.store.customers.get(p.customer_id)
            manager = self.store.employees.get(p.manager_id)
            note = self.store.get_note(p.note_id)
            history.append({
                "payment_id": p.payment_id,
                "contract_id": p.contract_id,
                "customer_id": p.customer_id,
                "customer_name": customer.full_name if customer else None,
                "manager_id": p.manager_id,
                "manager_name": manager.full_name if manager else None,
                "payment_type": p.payment_type,
                "status": p.status,
                "expected_amount": p.expected_amount,
                "actual_amount": p.actual_amount,
                "remaining_amount": p.remaining_amount,
                "excess_amount": p.excess_amount,
                "target_month": p.target_month,
                "date": p.date,
                "confirmed_at": p.confirmed_at,
                "note": note.text if note else None,
            })
        history.sort(key=lambda row: row["confirmed_at"] or row["date"], reverse=True)
        return history

    def get_contract_summary(self, contract_id: str) -> ContractSummary:
        contract = self.store.get_contract(contract_id)
        paid = total_paid(self.store, contract_id)
        shortfall = sum(
            (
                p.remaining_amount
                for p in self.store.get_contract_payments(contract_id)
                if p.status == PaymentStatus.UNDERPAID and p.payment_type != PaymentType.EXTRA
            ),
            ZERO,
        )
        remaining = contract.total_price - paid - contract.prepaid_balance
        return ContractSummary(
            contract_id=contract_id,
            total_price=contract.total_price,
            total_paid=paid,
            prepaid_balance=contract.prepaid_balance,
            remaining_debt=max(quantize(remaining), ZERO),
            paid_months=self._paid_months(contract),
            period=contract.period,
            monthly_payment=contract.monthly_payment,
            next_payment_date=contract.next_payment_date,
            status=contract.status,
            is_postponed=contract.is_postponed,
            outstanding_shortfall=shortfall,
        )

    def _paid_months(self, contract: Contract) -> int:
        return sum(
            1
            for p in self.store.get_contract_payments(contract.contract_id)
            if p.payment_type == PaymentType.MONTHLY and p.is_confirmed
        )

    def _resolve_shortfall(self, payment_id: str) -> tuple[Payment, Payment]:
        target = self.store.get_payment(payment_id)
        if target.payment_type == PaymentType.EXTRA:
            if target.is_rejected or target.is_paid:
                raise ValidationError(f"Payment {payment_id} has no outstanding shortfall")
            original = self.store.get_payment(target.linked_payment_id)
            if not original.is_paid:
                raise ValidationError(f"Payment {original.payment_id} must be confirmed before its shortfall is paid")
            return original, target

        if target.status != PaymentStatus.UNDERPAID or is_zero(target.remaining_amount, self.epsilon):
            raise ValidationError(f"Payment {payment_id} has no outstanding shortfall")
        if not target.is_paid:
            raise ValidationError(f"Payment {payment_id} must be confirmed before its shortfall is paid")
        for extra in self.store.get_linked_payments(payment_id):
            if not extra.is_rejected and not extra.is_paid:
                return target, extra
        raise ValidationError(f"Payment {payment_id} has no outstanding shortfall")

    @staticmethod
    def _intake_message(
        expected: Decimal,
        actual: Decimal,
        status: PaymentStatus,
        remaining: Decimal,
        excess: Decimal,
    ) -> str:
        if status == PaymentStatus.UNDERPAID:
            return f"Received {format_money(actual)} of {format_money(expected)}: {format_money(remaining)} short"
        if status == PaymentStatus.OVERPAID:
            return (
                f"Received {format_money(actual)} of {format_money(expected)}: "
                f"{format_money(excess)} moved to prepaid balance"
            )
        return f"Received {format_money(actual)}, monthly payment covered"
