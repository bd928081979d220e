"""Scenarios that populate a ledger with realistic activity."""

from nasiya.scenarios.portfolio import InstallmentPortfolioScenario

__all__ = ["InstallmentPortfolioScenario"]
