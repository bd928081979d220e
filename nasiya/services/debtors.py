"""Overdue sweep: materialize Debtor records for late contracts."""

import logging
import threading
from datetime import datetime

from nasiya.dates import overdue_days
from nasiya.logging import ledger_context
from nasiya.models import new_id
from nasiya.models.installment import ContractStatus, Debtor
from nasiya.services.base import BaseService
from nasiya.services.completion import check_contract_completion

logger = logging.getLogger(__name__)


class DebtorService(BaseService):
    """Creates and refreshes Debtor records."""

    def create_overdue_debtors(self, now: datetime | None = None) -> list[Debtor]:
        """Create a Debtor for every open contract past its due date.

        Contracts that already have a Debtor are skipped, so running the
        sweep again (or concurrently) creates nothing new.

        Returns
        -------
        list[Debtor]
            Debtors created by this run.
        """
        now = now or self.clock()
        created = []
        for contract in self.store.get_open_contracts():
            if contract.next_payment_date >= now.date():
                continue
            debtor = Debtor(
                debtor_id=new_id(),
                contract_id=contract.contract_id,
                debt_amount=contract.monthly_payment,
                due_date=contract.next_payment_date,
                overdue_days=overdue_days(contract.next_payment_date, now),
                created_by=contract.created_by,
                created_at=now,
            )
            if self.store.add_debtor_if_absent(debtor):
                created.append(debtor)

        logger.info("Debtor sweep: %d new debtor(s)", len(created))
        return created

    def refresh_overdue_days(self, now: datetime | None = None) -> int:
        """Recompute ``overdue_days`` of open debtors, returning how many changed."""
        now = now or self.clock()
        changed = 0
        with self.store.transaction():
            for debtor in self.store.debtors.values():
                days = overdue_days(debtor.due_date, now)
                if days != debtor.overdue_days:
                    debtor.overdue_days = days
                    changed += 1
        return changed

    def check_all_contracts_status(self) -> dict[str, int]:
        """Re-run the completion check on every approved contract."""
        counts = {"checked": 0, "completed": 0, "reopened": 0}
        with self.store.transaction():
            for contract in self.store.get_active_contracts():
                before = contract.status
                after = check_contract_completion(self.store, contract)
                counts["checked"] += 1
                if before != after:
                    key = "completed" if after == ContractStatus.COMPLETED else "reopened"
                    counts[key] += 1
        logger.info("Contract status check: %s", counts)
        return counts

    def run_sweep(self, now: datetime | None = None) -> dict[str, int]:
        """One scheduled tick: status check, new debtors, overdue refresh."""
        status = self.check_all_contracts_status()
        created = self.create_overdue_debtors(now)
        refreshed = self.refresh_overdue_days(now)
        return {**status, "debtors_created": len(created), "debtors_refreshed": refreshed}


class DebtorSweeper:
    """Background thread that runs the debtor sweep on a fixed interval.

    Parameters
    ----------
    service : DebtorService
        Service whose :meth:`DebtorService.run_sweep` is called each tick.
    interval : float
        Seconds between ticks.
    initial_delay : float
        Seconds before the first tick.
    """

    def __init__(self, service: DebtorService, interval: float = 86400.0, initial_delay: float = 5.0) -> None:
        self.service = service
        self.interval = interval
        self.initial_delay = initial_delay
        self.ticks = 0
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="debtor-sweeper", daemon=True)
        self._thread.start()
        logger.info("Debtor sweeper started (every %.0fs, first in %.0fs)", self.interval, self.initial_delay)

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Debtor sweeper stopped after %d tick(s)", self.ticks)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        if self._stop.wait(self.initial_delay):
            return
        while True:
            self.tick()
            if self._stop.wait(self.interval):
                return

    def tick(self) -> None:
        with ledger_context(job="debtor_sweep", tick=self.ticks + 1):
            try:
                result = self.service.run_sweep()
            except Exception:
                logger.exception("Debtor sweep failed")
            else:
                logger.info("Debtor sweep finished: %s", result)
            finally:
                self.ticks += 1
