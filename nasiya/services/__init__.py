"""Ledger services: reconciliation, cash workflow, edits and sweeps."""

from nasiya.services.cash import CashService
from nasiya.services.classification import Classification, classify
from nasiya.services.completion import check_contract_completion, total_paid
from nasiya.services.container import Services, build_services
from nasiya.services.contracts import ContractService, NewContract
from nasiya.services.debtors import DebtorService, DebtorSweeper
from nasiya.services.edits import ContractEditService, EditResult
from nasiya.services.payments import ContractSummary, PaymentReceipt, PaymentService
from nasiya.services.postponement import PostponementService
from nasiya.services.security import AuditLogger, RateLimiter

__all__ = [
    "AuditLogger",
    "CashService",
    "Classification",
    "ContractEditService",
    "ContractService",
    "ContractSummary",
    "DebtorService",
    "DebtorSweeper",
    "EditResult",
    "NewContract",
    "PaymentReceipt",
    "PaymentService",
    "PostponementService",
    "RateLimiter",
    "Services",
    "build_services",
    "check_contract_completion",
    "classify",
    "total_paid",
]
