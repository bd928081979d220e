"""Single-slot postponement of a contract's next due date."""

import logging
from datetime import date, datetime

from nasiya.dates import to_date
from nasiya.exceptions import InvalidEntityStateError, ValidationError
from nasiya.models import Actor
from nasiya.models.installment import Contract, ContractStatus
from nasiya.services.base import BaseService

logger = logging.getLogger(__name__)


class PostponementService(BaseService):

    def postpone_payment(
        self,
        contract_id: str,
        new_date: date | datetime | str,
        reason: str | None,
        actor: Actor,
    ) -> Contract:
        """Defer the next due date to ``new_date``.

        Only one postponement is tracked: postponing again before a payment
        overwrites ``previous_payment_date`` with the date being replaced.
        """
        target = to_date(new_date)
        with self.store.transaction():
            now = self.clock()
            if target < now.date():
                raise ValidationError(
                    f"Postponement date {target} is in the past",
                    errors=[{"field": "new_date", "value": target.isoformat()}],
                )
            contract = self.store.get_contract(contract_id)
            if contract.status == ContractStatus.COMPLETED:
                raise InvalidEntityStateError(f"Contract {contract_id} is already completed")
            self._employee(actor)

            replaced = contract.next_payment_date
            if contract.original_payment_day is None:
                contract.original_payment_day = replaced.day
            contract.previous_payment_date = replaced
            contract.next_payment_date = target
            contract.postponed_at = now
            contract.is_postponed_once = True
            contract.updated_at = now

            text = f"Payment postponed from {replaced.isoformat()} to {target.isoformat()}"
            if reason:
                text = f"{text}: {reason}"
            self._write_note(contract.customer_id, text, actor)

        logger.info("Contract %s postponed %s -> %s", contract_id, replaced, target)
        return contract
