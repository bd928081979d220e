"""Wires the services around one store."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from nasiya.config import NasiyaConfig
from nasiya.services.cash import CashService
from nasiya.services.contracts import ContractService
from nasiya.services.debtors import DebtorService, DebtorSweeper
from nasiya.services.edits import ContractEditService
from nasiya.services.payments import PaymentService
from nasiya.services.postponement import PostponementService
from nasiya.services.security import AuditLogger, RateLimiter
from nasiya.store import InstallmentStore


@dataclass
class Services:
    """Service objects sharing one store and config."""

    store: InstallmentStore
    config: NasiyaConfig
    contracts: ContractService
    payments: PaymentService
    cash: CashService
    postponement: PostponementService
    edits: ContractEditService
    debtors: DebtorService
    rate_limiter: RateLimiter
    audit: AuditLogger

    def sweeper(self) -> DebtorSweeper:
        return DebtorSweeper(
            self.debtors,
            interval=self.config.sweep.interval_seconds,
            initial_delay=self.config.sweep.initial_delay_seconds,
        )


def build_services(
    config: NasiyaConfig | None = None,
    store: InstallmentStore | None = None,
    clock: Callable[[], datetime] | None = None,
) -> Services:
    """Create every service around ``store`` (a fresh one by default)."""
    config = config or NasiyaConfig()
    store = store if store is not None else InstallmentStore()
    rate_limiter = RateLimiter(config.rate_limit.max_edits, config.rate_limit.window_seconds)
    audit = AuditLogger(store)
    return Services(
        store=store,
        config=config,
        contracts=ContractService(store, config, clock),
        payments=PaymentService(store, config, clock),
        cash=CashService(store, config, clock),
        postponement=PostponementService(store, config, clock),
        edits=ContractEditService(store, config, clock, rate_limiter=rate_limiter, audit=audit),
        debtors=DebtorService(store, config, clock),
        rate_limiter=rate_limiter,
        audit=audit,
    )
