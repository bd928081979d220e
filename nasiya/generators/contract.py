"""Contract terms generator."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from nasiya.dates import add_months
from nasiya.generators.base import BaseGenerator
from nasiya.services.contracts import NewContract


class ContractGenerator(BaseGenerator):
    """Generate realistic installment terms for the product catalog."""

    # (product, price range in base currency)
    PRODUCTS = [
        ("iPhone 15 Pro Max", (1100, 1400)),
        ("iPhone 14", (650, 850)),
        ("Samsung Galaxy S24", (800, 1100)),
        ("MacBook Pro M3", (2000, 2800)),
        ("Samsung QLED TV 55", (700, 1000)),
        ("Artel washing machine", (300, 500)),
    ]
    PERIODS = [6, 8, 10, 12, 18]
    PERIOD_WEIGHTS = [0.15, 0.15, 0.2, 0.35, 0.15]

    # Markup by period, percent
    MARKUP = {6: 20, 8: 25, 10: 30, 12: 35, 18: 50}

    def generate(self, customer_id: str, start_date: date | None = None) -> NewContract:
        """Generate terms for one contract.

        Parameters
        ----------
        customer_id : str
            Buyer of the product.
        start_date : date | None
            Contract start; defaults to 1-6 months ago.

        Returns
        -------
        NewContract
            Terms ready for :meth:`ContractService.create_contract`.
        """
        product, (low, high) = self.random.choice(self.PRODUCTS)
        price = Decimal(self.random.randint(low, high))
        period = self.random.choices(self.PERIODS, weights=self.PERIOD_WEIGHTS, k=1)[0]
        percentage = Decimal(self.MARKUP[period])
        initial = (price * Decimal(self.random.choice([0, 10, 20, 25, 30])) / 100).quantize(Decimal("1"))

        principal = price - initial
        markup = principal * percentage / 100
        monthly = ((principal + markup) / period).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        total = initial + monthly * period

        if start_date is None:
            start_date = add_months(date.today(), -self.random.randint(1, 6))

        return NewContract(
            customer_id=customer_id,
            product_name=product,
            original_price=price,
            price=price,
            initial_payment=initial,
            percentage=percentage,
            period=period,
            monthly_payment=monthly,
            total_price=total,
            start_date=start_date,
            notes=f"{product}, {period} months",
            info={
                "box": self.random.random() < 0.8,
                "mbox": self.random.random() < 0.5,
                "receipt": self.random.random() < 0.7,
                "icloud": product.startswith(("iPhone", "MacBook")),
            },
        )
