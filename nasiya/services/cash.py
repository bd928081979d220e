"""Cash office workflow: confirm or reject PENDING payments."""

import logging
from typing import Any

from nasiya.dates import add_months
from nasiya.exceptions import AlreadyProcessedError, NasiyaError, ValidationError
from nasiya.models import Actor
from nasiya.models.installment import Payment, PaymentStatus, PaymentType
from nasiya.money import ZERO, quantize
from nasiya.services.base import BaseService
from nasiya.services.classification import classify

logger = logging.getLogger(__name__)


class CashService(BaseService):
    """PENDING -> PAID / REJECTED state machine for self-reported payments."""

    def list_pending_payments(self) -> list[dict[str, Any]]:
        """PENDING entries with their customer and manager resolved."""
        rows = []
        for payment in sorted(self.store.get_pending_payments(), key=lambda p: p.date):
            customer = self.store.customers.get(payment.customer_id)
            manager = self.store.employees.get(payment.manager_id)
            note = self.store.get_note(payment.note_id)
            rows.append({
                "payment": payment,
                "customer_name": customer.full_name if customer else None,
                "customer_phone": customer.phone if customer else None,
                "manager_name": manager.full_name if manager else None,
                "note": note.text if note else None,
            })
        return rows

    def confirm_payment(self, payment_id: str, actor: Actor) -> Payment:
        """Verify the cash of a PENDING payment.

        Raises
        ------
        AlreadyProcessedError
            The payment was already confirmed or rejected.
        """
        with self.store.transaction():
            payment = self.store.get_payment(payment_id)
            self._guard_pending(payment)
            contract = self.store.get_contract(payment.contract_id)
            self._employee(actor)
            now = self.clock()

            result = classify(payment.expected_amount, payment.actual_amount or ZERO, self.epsilon)
            payment.status = result.status
            payment.is_paid = True
            payment.confirmed_at = now
            payment.confirmed_by = actor.employee_id
            payment.updated_at = now
            if payment.payment_id not in contract.payments:
                contract.payments.append(payment.payment_id)

            if payment.payment_type == PaymentType.MONTHLY:
                if payment.advanced_from_date is None:
                    self._advance_due_date(contract)
                else:
                    self._clear_postponement(contract)

            self._credit_manager(payment.manager_id, payment.actual_amount or ZERO)
            if not result.is_underpaid:
                self._clear_debtors(contract)
            self._append_note(payment.note_id, f"Confirmed by {actor.employee_id}")

            contract.updated_at = now
            self._check_completion(contract)

        logger.info("Payment %s confirmed as %s by %s", payment_id, payment.status.value, actor.employee_id)
        return payment

    def confirm_payments(self, payment_ids: list[str], actor: Actor) -> list[dict[str, Any]]:
        """Confirm several payments; each succeeds or fails on its own."""
        if not payment_ids:
            raise ValidationError("No payments selected", errors=[{"field": "payment_ids"}])

        results = []
        for payment_id in payment_ids:
            try:
                payment = self.confirm_payment(payment_id, actor)
            except NasiyaError as exc:
                logger.warning("Could not confirm payment %s: %s", payment_id, exc.message)
                results.append({"payment_id": payment_id, "success": False, "message": exc.message})
            else:
                results.append({"payment_id": payment_id, "success": True, "status": payment.status})
        return results

    def reject_payment(self, payment_id: str, reason: str, actor: Actor) -> Payment:
        """Reject a PENDING payment and undo what its intake did.

        The prepaid credit of an overpayment is reversed, the corrective
        entry of an underpayment is rejected with it, and an optimistically
        advanced due date moves back one month. Balances and debtors are
        untouched.
        """
        if not reason or not reason.strip():
            raise ValidationError("A rejection reason is required", errors=[{"field": "reason"}])

        with self.store.transaction():
            payment = self.store.get_payment(payment_id)
            self._guard_pending(payment)
            contract = self.store.get_contract(payment.contract_id)
            self._employee(actor)
            now = self.clock()

            payment.status = PaymentStatus.REJECTED
            payment.is_paid = False
            payment.updated_at = now
            self._append_note(payment.note_id, f"[REJECTED: {reason.strip()}]")

            if payment.prepaid_amount > 0:
                contract.prepaid_balance = max(quantize(contract.prepaid_balance - payment.prepaid_amount), ZERO)

            for extra in self.store.get_linked_payments(payment_id):
                if extra.status == PaymentStatus.PENDING:
                    extra.status = PaymentStatus.REJECTED
                    extra.remaining_amount = ZERO
                    extra.updated_at = now
                    self._append_note(extra.note_id, f"[REJECTED with payment {payment_id}]")

            if payment.payment_type == PaymentType.MONTHLY and payment.advanced_from_date is not None:
                # One month per rejected entry; other pending entries keep their advance
                rolled_back = add_months(contract.next_payment_date, -1, contract.original_payment_day)
                logger.info(
                    "Contract %s next payment rolled back %s -> %s",
                    contract.contract_id,
                    contract.next_payment_date,
                    rolled_back,
                )
                contract.next_payment_date = rolled_back

            contract.updated_at = now
            self._check_completion(contract)

        logger.info("Payment %s rejected by %s: %s", payment_id, actor.employee_id, reason)
        return payment

    @staticmethod
    def _guard_pending(payment: Payment) -> None:
        if payment.is_paid or payment.status != PaymentStatus.PENDING:
            raise AlreadyProcessedError(
                f"Payment {payment.payment_id} was already processed ({payment.status.value})"
            )
        if payment.payment_type == PaymentType.EXTRA:
            raise ValidationError(
                f"Payment {payment.payment_id} is a corrective entry; settle it with pay-remaining"
            )
