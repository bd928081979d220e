"""Contract edits and their impact on already-paid entries."""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from nasiya.config import NasiyaConfig
from nasiya.exceptions import NasiyaError, ValidationError
from nasiya.models import Actor
from nasiya.models.installment import (
    Contract,
    ContractEdit,
    FieldChange,
    ImpactSummary,
    Payment,
    PaymentReason,
    PaymentStatus,
    PaymentType,
)
from nasiya.money import ZERO, format_money, quantize, to_money
from nasiya.services.base import BaseService
from nasiya.services.classification import Classification, classify
from nasiya.services.security import AuditLogger, RateLimiter
from nasiya.store import InstallmentStore

logger = logging.getLogger(__name__)

# Fields whose change re-derives ledger entries
FINANCIAL_FIELDS = ("monthly_payment", "initial_payment", "total_price")
PLAIN_FIELDS = ("product_name", "original_price", "price", "percentage", "period")
_MONEY_FIELDS = ("original_price", "price", "percentage")


@dataclass
class Rederivation:
    """New classification of one confirmed MONTHLY entry."""

    payment: Payment
    paid: Decimal
    expected: Decimal
    result: Classification


@dataclass
class EditResult:
    contract_id: str
    changes: list[FieldChange] = field(default_factory=list)
    impact_summary: ImpactSummary = field(default_factory=ImpactSummary)
    affected_payments: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "contract_id": self.contract_id,
            "changes": [
                {"field": c.field, "old_value": c.old_value, "new_value": c.new_value, "difference": c.difference}
                for c in self.changes
            ],
            "impact_summary": self.impact_summary.to_dict(),
            "affected_payments": list(self.affected_payments),
        }


class ContractEditService(BaseService):
    """Applies contract edits and re-derives the ledger they affect."""

    def __init__(
        self,
        store: InstallmentStore,
        config: NasiyaConfig | None = None,
        clock: Callable[[], datetime] | None = None,
        rate_limiter: RateLimiter | None = None,
        audit: AuditLogger | None = None,
    ) -> None:
        super().__init__(store, config, clock)
        self.rate_limiter = rate_limiter or RateLimiter(
            self.config.rate_limit.max_edits,
            self.config.rate_limit.window_seconds,
        )
        self.audit = audit or AuditLogger(store)

    def detect_changes(self, contract: Contract, new_values: Mapping[str, Any]) -> list[FieldChange]:
        """Financial fields in ``new_values`` that differ from the contract."""
        changes = []
        for name in FINANCIAL_FIELDS:
            if new_values.get(name) is None:
                continue
            old = getattr(contract, name)
            new = to_money(new_values[name])
            if new != old:
                changes.append(FieldChange(field=name, old_value=old, new_value=new))
        return changes

    def validate_edit(self, contract: Contract, changes: list[FieldChange]) -> None:
        """Reject negative values, excessive monthly drift and total <= initial.

        Raises
        ------
        ValidationError
            With one ``errors`` item per violated rule.
        """
        errors: list[dict[str, Any]] = []
        limit = self.config.ledger.max_monthly_change_percent
        for change in changes:
            if change.new_value < 0:
                errors.append({"field": change.field, "message": f"{change.field} cannot be negative"})
                continue
            if change.field == "monthly_payment" and change.old_value > 0 and change.new_value > 0:
                drift = abs(change.difference) / change.old_value * 100
                if drift > limit:
                    errors.append({
                        "field": change.field,
                        "message": f"Monthly payment may change by at most {limit}% (requested {drift:.1f}%)",
                    })

        by_field = {c.field: c.new_value for c in changes}
        total = by_field.get("total_price", contract.total_price)
        initial = by_field.get("initial_payment", contract.initial_payment)
        if total <= initial:
            errors.append({"field": "total_price", "message": "Total price must be greater than the initial payment"})

        if errors:
            raise ValidationError("; ".join(e["message"] for e in errors), errors=errors)

    def analyze_edit_impact(self, contract_id: str, new_values: Mapping[str, Any]) -> EditResult:
        """Preview what an edit would do without changing anything."""
        contract = self.store.get_contract(contract_id)
        changes = self.detect_changes(contract, new_values)
        self.validate_edit(contract, changes)

        result = EditResult(contract_id=contract_id, changes=changes)
        for change in changes:
            if change.field == "monthly_payment":
                plan, _, summary = self._plan_cascade(contract, change.new_value)
                result.impact_summary = summary
                result.affected_payments = [
                    item.payment.payment_id
                    for item in plan
                    if item.result.status != item.payment.status or item.expected != item.payment.expected_amount
                ]
        return result

    def handle_monthly_payment_change(
        self,
        contract: Contract,
        old_amount: Decimal,
        new_amount: Decimal,
        actor: Actor,
    ) -> tuple[ImpactSummary, list[str]]:
        """Re-derive confirmed MONTHLY entries against ``new_amount``.

        Entries are replayed oldest first. Each one is expected to cover
        ``new_amount`` minus the excess carried from the entry before it;
        its own excess becomes the next carry, while exact and short
        entries leave nothing to carry. Short entries get a fresh
        corrective EXTRA entry and the final carry joins the prepaid
        balance.
        """
        plan, carry, summary = self._plan_cascade(contract, new_amount)
        reason = (
            PaymentReason.MONTHLY_PAYMENT_INCREASE
            if new_amount > old_amount
            else PaymentReason.MONTHLY_PAYMENT_DECREASE
        )
        now = self.clock()
        affected: list[str] = []

        for item in plan:
            payment = item.payment
            self._supersede_corrections(payment, now)
            payment.amount = new_amount
            payment.expected_amount = item.expected
            payment.status = item.result.status
            payment.remaining_amount = item.result.remaining
            payment.excess_amount = item.result.excess
            payment.updated_at = now
            affected.append(payment.payment_id)

            if item.result.is_underpaid:
                extra = self._create_extra_payment(
                    contract,
                    payment,
                    item.result.remaining,
                    actor,
                    (
                        f"Monthly payment changed {format_money(old_amount)} -> {format_money(new_amount)}: "
                        f"{payment.target_month} short by {format_money(item.result.remaining)}"
                    ),
                    reason=reason,
                )
                affected.append(extra.payment_id)

        if carry > 0:
            contract.prepaid_balance = quantize(contract.prepaid_balance + carry)

        logger.info(
            "Contract %s monthly %s -> %s: %d underpaid, %d overpaid, prepaid +%s",
            contract.contract_id,
            old_amount,
            new_amount,
            summary.underpaid_count,
            summary.overpaid_count,
            carry,
        )
        return summary, affected

    def handle_initial_payment_change(self, contract: Contract, diff: Decimal, actor: Actor) -> list[str]:
        """Shift the INITIAL entry by ``diff`` and move the same amount in the balance."""
        initial = next(
            (
                p
                for p in self.store.get_contract_payments(contract.contract_id)
                if p.payment_type == PaymentType.INITIAL and not p.is_rejected
            ),
            None,
        )
        customer = self.store.customers.get(contract.customer_id)
        manager_id = customer.manager_id if customer and customer.manager_id else actor.employee_id
        text = f"Initial payment changed by {format_money(diff)}"

        if initial is None:
            if contract.initial_payment + diff <= 0:
                return []
            contract.initial_payment = quantize(contract.initial_payment + diff)
            return [self._create_initial_payment(contract, actor).payment_id]

        initial.amount = quantize(initial.amount + diff)
        initial.expected_amount = initial.amount
        initial.actual_amount = quantize((initial.actual_amount or ZERO) + diff)
        initial.updated_at = self.clock()
        self._append_note(initial.note_id, text)
        self._credit_manager(manager_id, diff)
        logger.info("Contract %s initial payment adjusted by %s", contract.contract_id, diff)
        return [initial.payment_id]

    def handle_total_price_change(self, contract: Contract, new_total: Decimal) -> None:
        logger.info("Contract %s total price %s -> %s", contract.contract_id, contract.total_price, new_total)
        contract.total_price = new_total
        self._check_completion(contract)

    def handle_debtor_update(self, contract_id: str, new_amount: Decimal) -> int:
        """Set every open debtor of the contract to owe ``new_amount``."""
        debtors = self.store.get_contract_debtors(contract_id)
        for debtor in debtors:
            debtor.debt_amount = new_amount
        return len(debtors)

    def update_contract(self, contract_id: str, changed_fields: Mapping[str, Any], actor: Actor) -> EditResult:
        """Edit a contract, cascading financial changes through its ledger.

        Raises
        ------
        RateLimitedError
            The actor edited too many contracts within the window.
        EntityNotFoundError
            Unknown or deleted contract.
        ValidationError
            The edit breaks a contract rule.
        """
        self.rate_limiter.check(actor.employee_id)

        result = EditResult(contract_id=contract_id)
        try:
            with self.store.transaction():
                contract = self.store.get_contract(contract_id)
                self._employee(actor)
                changes = self.detect_changes(contract, changed_fields)
                self.validate_edit(contract, changes)
                self._validate_plain_fields(changed_fields)
                result.changes = changes
                now = self.clock()

                # Total price last, its handler runs the completion check
                order = {name: i for i, name in enumerate(FINANCIAL_FIELDS)}
                for change in sorted(changes, key=lambda c: order[c.field]):
                    if change.field == "monthly_payment":
                        summary, affected = self.handle_monthly_payment_change(
                            contract, change.old_value, change.new_value, actor
                        )
                        contract.monthly_payment = change.new_value
                        self.handle_debtor_update(contract_id, change.new_value)
                        result.impact_summary = summary
                        result.affected_payments.extend(affected)
                    elif change.field == "initial_payment":
                        result.affected_payments.extend(
                            self.handle_initial_payment_change(contract, change.difference, actor)
                        )
                        contract.initial_payment = change.new_value
                    elif change.field == "total_price":
                        self.handle_total_price_change(contract, change.new_value)

                self._apply_plain_fields(contract, changed_fields, actor)
                if changes:
                    contract.edit_history.append(
                        ContractEdit(
                            date=now,
                            edited_by=actor.employee_id,
                            changes=tuple(changes),
                            affected_payments=tuple(result.affected_payments),
                            impact_summary=result.impact_summary,
                        )
                    )
                contract.updated_at = now
                self._check_completion(contract)
        except NasiyaError as exc:
            self.audit.record(
                "CONTRACT_UPDATE",
                "contract",
                contract_id,
                actor.employee_id,
                success=False,
                error_message=exc.message,
            )
            raise

        self.audit.record(
            "CONTRACT_UPDATE",
            "contract",
            contract_id,
            actor.employee_id,
            success=True,
            changes=[
                {"field": c.field, "old_value": str(c.old_value), "new_value": str(c.new_value)}
                for c in result.changes
            ],
        )
        logger.info(
            "Contract %s updated by %s (%d financial change(s))",
            contract_id,
            actor.employee_id,
            len(result.changes),
        )
        return result

    def _plan_cascade(
        self,
        contract: Contract,
        new_amount: Decimal,
    ) -> tuple[list[Rederivation], Decimal, ImpactSummary]:
        entries = sorted(
            (
                p
                for p in self.store.get_contract_payments(contract.contract_id)
                if p.payment_type == PaymentType.MONTHLY and p.is_paid and not p.is_rejected
            ),
            key=lambda p: p.date,
        )
        summary = ImpactSummary()
        plan = []
        carry = ZERO
        for payment in entries:
            expected = quantize(new_amount - carry)
            paid = self._paid_toward(payment)
            result = classify(expected, paid, self.epsilon)
            plan.append(Rederivation(payment=payment, paid=paid, expected=expected, result=result))

            if result.is_underpaid:
                summary.underpaid_count += 1
                summary.total_shortage += result.remaining
                summary.additional_payments_created += 1
                carry = ZERO
            elif result.is_overpaid:
                summary.overpaid_count += 1
                summary.total_excess += result.excess
                carry = result.excess
            else:
                carry = ZERO
        return plan, carry, summary

    def _paid_toward(self, payment: Payment) -> Decimal:
        """Cash of the entry plus what its corrective entries collected."""
        paid = payment.actual_amount or ZERO
        for extra in self.store.get_linked_payments(payment.payment_id):
            paid += extra.counted_amount
        return paid

    def _supersede_corrections(self, payment: Payment, now: datetime) -> None:
        for extra in self.store.get_linked_payments(payment.payment_id):
            if extra.is_rejected or extra.is_paid:
                continue
            if extra.actual_amount is None:
                extra.status = PaymentStatus.REJECTED
                self._append_note(extra.note_id, "[SUPERSEDED by contract edit]")
            else:
                # Collected cash is folded into the re-derived entry
                extra.status = PaymentStatus.PAID
                extra.is_paid = True
                self._append_note(extra.note_id, "[CLOSED by contract edit]")
            extra.remaining_amount = ZERO
            extra.updated_at = now

    def _validate_plain_fields(self, changed_fields: Mapping[str, Any]) -> None:
        period = changed_fields.get("period")
        if period is not None and (not isinstance(period, int) or isinstance(period, bool) or period <= 0):
            raise ValidationError("Period must be a positive number of months", errors=[{"field": "period"}])
        for name in _MONEY_FIELDS:
            value = changed_fields.get(name)
            if value is not None and to_money(value) < 0:
                raise ValidationError(f"{name} cannot be negative", errors=[{"field": name}])

    def _apply_plain_fields(self, contract: Contract, changed_fields: Mapping[str, Any], actor: Actor) -> None:
        for name in PLAIN_FIELDS:
            value = changed_fields.get(name)
            if value is None:
                continue
            if name in _MONEY_FIELDS:
                value = to_money(value)
            setattr(contract, name, value)

        info = changed_fields.get("info")
        if info:
            for flag, enabled in dict(info).items():
                if hasattr(contract.info, flag):
                    setattr(contract.info, flag, bool(enabled))

        notes = changed_fields.get("notes")
        if notes:
            note = self.store.get_note(contract.note_id)
            if note is None:
                contract.note_id = self._write_note(contract.customer_id, notes, actor).note_id
            else:
                note.text = notes
