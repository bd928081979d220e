"""Base generator class for demo data generators."""

from __future__ import annotations

import random
from abc import ABC

from faker import Faker


class BaseGenerator(ABC):
    """Base class for all data generators.

    Provides common initialization: Faker instance creation and
    seed-based reproducibility.

    Parameters
    ----------
    seed : int | None
        Random seed for reproducibility.
    locale : str
        Faker locale (default ``ru_RU``, the closest locale with names
        common in Uzbekistan).
    """

    def __init__(self, seed: int | None = None, locale: str = "ru_RU") -> None:
        self.fake = Faker(locale)
        self.random = random.Random(seed)
        if seed is not None:
            self.fake.seed_instance(seed)

    def _phone(self) -> str:
        operator = self.random.choice(["90", "91", "93", "94", "97", "99"])
        return self.fake.numerify(f"+998{operator}#######")
