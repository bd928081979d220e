"""Faker-backed generators for demo customers, staff and contracts."""

from nasiya.generators.contract import ContractGenerator
from nasiya.generators.party import CustomerGenerator, EmployeeGenerator

__all__ = ["ContractGenerator", "CustomerGenerator", "EmployeeGenerator"]
