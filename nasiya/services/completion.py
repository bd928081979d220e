"""Contract completion check."""

import logging
from datetime import datetime
from decimal import Decimal

from nasiya.models.installment import Contract, ContractStatus
from nasiya.money import ZERO
from nasiya.store import InstallmentStore

logger = logging.getLogger(__name__)


def total_paid(store: InstallmentStore, contract_id: str) -> Decimal:
    """Sum of received, non-rejected entry amounts for a contract."""
    return sum(
        (p.counted_amount for p in store.get_contract_payments(contract_id)),
        ZERO,
    )


def check_contract_completion(store: InstallmentStore, contract: Contract) -> ContractStatus:
    """Set the contract COMPLETED or ACTIVE from what has been paid.

    The check runs in both directions, so raising the total price on a
    completed contract reopens it.
    """
    paid = total_paid(store, contract.contract_id) + contract.prepaid_balance
    status = ContractStatus.COMPLETED if paid >= contract.total_price else ContractStatus.ACTIVE

    if status != contract.status:
        logger.info(
            "Contract %s %s -> %s (paid %s of %s)",
            contract.contract_id,
            contract.status.value,
            status.value,
            paid,
            contract.total_price,
        )
        contract.status = status
        contract.updated_at = datetime.now()
    return status
