"""Ledger entry classification against an expected amount."""

from dataclasses import dataclass
from decimal import Decimal

from nasiya.models.installment import PaymentStatus
from nasiya.money import EPSILON, ZERO, quantize


@dataclass(frozen=True)
class Classification:
    """Status of a received amount and the shortfall or excess it leaves."""

    status: PaymentStatus
    remaining: Decimal = ZERO
    excess: Decimal = ZERO

    @property
    def is_underpaid(self) -> bool:
        return self.status == PaymentStatus.UNDERPAID

    @property
    def is_overpaid(self) -> bool:
        return self.status == PaymentStatus.OVERPAID


def classify(expected: Decimal, actual: Decimal, epsilon: Decimal = EPSILON) -> Classification:
    """Classify ``actual`` against ``expected``.

    Parameters
    ----------
    expected : Decimal
        Amount the period called for.
    actual : Decimal
        Amount received.
    epsilon : Decimal
        Differences up to this size count as an exact payment.

    Returns
    -------
    Classification
        PAID within epsilon, UNDERPAID with ``remaining = expected - actual``
        or OVERPAID with ``excess = actual - expected``.
    """
    diff = actual - expected
    if abs(diff) <= epsilon:
        return Classification(PaymentStatus.PAID)
    if diff < 0:
        return Classification(PaymentStatus.UNDERPAID, remaining=quantize(-diff))
    return Classification(PaymentStatus.OVERPAID, excess=quantize(diff))
