"""Installment ledger data store with referential integrity."""

import copy
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from nasiya.exceptions import EntityNotFoundError, ReferentialIntegrityError
from nasiya.models import AuditLogEntry
from nasiya.models.installment import (
    Balance,
    Contract,
    CurrencyCourse,
    Customer,
    Debtor,
    Employee,
    Note,
    Payment,
    PaymentStatus,
    PaymentType,
)
from nasiya.money import quantize

# Captured by transaction() and restored in place on rollback
_TABLES = ("customers", "employees", "contracts", "payments", "balances", "debtors", "notes")
_INDEXES = ("_customer_contracts", "_contract_payments", "_contract_debtors")


@dataclass
class InstallmentStore:
    """In-memory store for installment entities with relationship tracking.

    Every mutating service call runs inside :meth:`transaction`, which holds
    a store-wide re-entrant lock and restores the pre-call state if the call
    raises. The audit log is outside the snapshot so failed attempts stay
    recorded.
    """

    # Primary entities
    customers: dict[str, Customer] = field(default_factory=dict)
    employees: dict[str, Employee] = field(default_factory=dict)
    contracts: dict[str, Contract] = field(default_factory=dict)
    payments: dict[str, Payment] = field(default_factory=dict)
    balances: dict[str, Balance] = field(default_factory=dict)
    debtors: dict[str, Debtor] = field(default_factory=dict)
    notes: dict[str, Note] = field(default_factory=dict)
    currency: CurrencyCourse = field(default_factory=CurrencyCourse)
    audit_log: list[AuditLogEntry] = field(default_factory=list)

    # Relationship indexes
    _customer_contracts: dict[str, list[str]] = field(default_factory=dict)
    _contract_payments: dict[str, list[str]] = field(default_factory=dict)
    _contract_debtors: dict[str, list[str]] = field(default_factory=dict)

    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _depth: int = field(default=0, repr=False)

    @contextmanager
    def transaction(self) -> Iterator["InstallmentStore"]:
        """Serialize a multi-step mutation and roll it back on failure.

        Rollback restores field values on the stored objects themselves, so
        references held by callers stay the live records. Nested calls join
        the outermost transaction.
        """
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            state = self._capture()
            self._depth = 1
            try:
                yield self
            except BaseException:
                self._restore(state)
                raise
            finally:
                self._depth = 0

    def _capture(self) -> dict[str, Any]:
        tables = {name: dict(getattr(self, name)) for name in _TABLES}
        records = [
            (obj, copy.deepcopy(vars(obj)))
            for table in tables.values()
            for obj in table.values()
        ]
        records.append((self.currency, copy.deepcopy(vars(self.currency))))
        indexes = {
            name: {key: list(ids) for key, ids in getattr(self, name).items()}
            for name in _INDEXES
        }
        return {"tables": tables, "records": records, "indexes": indexes}

    def _restore(self, state: dict[str, Any]) -> None:
        for obj, saved in state["records"]:
            obj.__dict__.clear()
            obj.__dict__.update(saved)
        for group in ("tables", "indexes"):
            for name, saved in state[group].items():
                current = getattr(self, name)
                current.clear()
                current.update(saved)

    def add_customer(self, customer: Customer) -> None:
        """Add a customer to the store."""
        if customer.manager_id and customer.manager_id not in self.employees:
            raise ReferentialIntegrityError(f"Employee {customer.manager_id} not found")
        if customer.created_at is None:
            customer.created_at = datetime.now()
        self.customers[customer.customer_id] = customer
        self._customer_contracts.setdefault(customer.customer_id, [])

    def add_employee(self, employee: Employee) -> None:
        """Add an employee to the store."""
        if employee.created_at is None:
            employee.created_at = datetime.now()
        self.employees[employee.employee_id] = employee

    def add_contract(self, contract: Contract) -> None:
        """Add a contract to the store."""
        if contract.customer_id not in self.customers:
            raise ReferentialIntegrityError(f"Customer {contract.customer_id} not found")

        now = datetime.now()
        if contract.created_at is None:
            contract.created_at = now
        contract.updated_at = now
        self.contracts[contract.contract_id] = contract
        self._customer_contracts[contract.customer_id].append(contract.contract_id)
        self._contract_payments.setdefault(contract.contract_id, [])
        self._contract_debtors.setdefault(contract.contract_id, [])

    def add_payment(self, payment: Payment) -> None:
        """Add a ledger entry to the store."""
        if payment.contract_id not in self.contracts:
            raise ReferentialIntegrityError(f"Contract {payment.contract_id} not found")
        if payment.linked_payment_id and payment.linked_payment_id not in self.payments:
            raise ReferentialIntegrityError(f"Payment {payment.linked_payment_id} not found")

        if payment.created_at is None:
            payment.created_at = datetime.now()
        self.payments[payment.payment_id] = payment
        self._contract_payments[payment.contract_id].append(payment.payment_id)

    def add_note(self, note: Note) -> None:
        """Add a note to the store."""
        if note.created_at is None:
            note.created_at = datetime.now()
        self.notes[note.note_id] = note

    def add_audit_entry(self, entry: AuditLogEntry) -> None:
        with self._lock:
            self.audit_log.append(entry)

    def add_debtor_if_absent(self, debtor: Debtor) -> bool:
        """Insert ``debtor`` unless its contract already has one.

        Returns
        -------
        bool
            True when the debtor was inserted.
        """
        with self._lock:
            if debtor.contract_id not in self.contracts:
                raise ReferentialIntegrityError(f"Contract {debtor.contract_id} not found")
            if self._contract_debtors.get(debtor.contract_id):
                return False
            if debtor.created_at is None:
                debtor.created_at = datetime.now()
            self.debtors[debtor.debtor_id] = debtor
            self._contract_debtors[debtor.contract_id] = [debtor.debtor_id]
            return True

    def delete_contract_debtors(self, contract_id: str) -> int:
        """Delete every debtor of a contract, returning how many were removed."""
        with self._lock:
            debtor_ids = self._contract_debtors.get(contract_id, [])
            for debtor_id in debtor_ids:
                self.debtors.pop(debtor_id, None)
            self._contract_debtors[contract_id] = []
            return len(debtor_ids)

    def credit_balance(self, manager_id: str, dollar: Decimal, sum: Decimal = Decimal("0")) -> Balance:
        """Atomically add to a manager's balance (negative amounts debit)."""
        with self._lock:
            if manager_id not in self.employees:
                raise ReferentialIntegrityError(f"Employee {manager_id} not found")
            balance = self.balances.get(manager_id)
            if balance is None:
                balance = Balance(manager_id=manager_id)
                self.balances[manager_id] = balance
            balance.dollar = quantize(balance.dollar + dollar)
            balance.sum = quantize(balance.sum + sum)
            balance.updated_at = datetime.now()
            return balance

    # Lookups
    def get_customer(self, customer_id: str) -> Customer:
        try:
            return self.customers[customer_id]
        except KeyError:
            raise EntityNotFoundError(f"Customer {customer_id} not found") from None

    def get_employee(self, employee_id: str) -> Employee:
        try:
            return self.employees[employee_id]
        except KeyError:
            raise EntityNotFoundError(f"Employee {employee_id} not found") from None

    def get_contract(self, contract_id: str, include_deleted: bool = False) -> Contract:
        contract = self.contracts.get(contract_id)
        if contract is None or (contract.is_deleted and not include_deleted):
            raise EntityNotFoundError(f"Contract {contract_id} not found")
        return contract

    def get_payment(self, payment_id: str) -> Payment:
        try:
            return self.payments[payment_id]
        except KeyError:
            raise EntityNotFoundError(f"Payment {payment_id} not found") from None

    def get_note(self, note_id: str | None) -> Note | None:
        if note_id is None:
            return None
        return self.notes.get(note_id)

    # Query methods
    def get_customer_contracts(self, customer_id: str) -> list[Contract]:
        """Get all contracts for a customer."""
        contract_ids = self._customer_contracts.get(customer_id, [])
        return [self.contracts[cid] for cid in contract_ids]

    def get_contract_payments(self, contract_id: str) -> list[Payment]:
        """Get every ledger entry of a contract in insertion order."""
        payment_ids = self._contract_payments.get(contract_id, [])
        return [self.payments[pid] for pid in payment_ids]

    def get_contract_debtors(self, contract_id: str) -> list[Debtor]:
        """Get open debtors for a contract."""
        debtor_ids = self._contract_debtors.get(contract_id, [])
        return [self.debtors[did] for did in debtor_ids]

    def get_linked_payments(self, payment_id: str) -> list[Payment]:
        """Get corrective EXTRA entries that point at ``payment_id``."""
        payment = self.payments.get(payment_id)
        if payment is None:
            return []
        return [
            p
            for p in self.get_contract_payments(payment.contract_id)
            if p.linked_payment_id == payment_id
        ]

    # Table scans hold the lock; the sweeper thread inserts concurrently
    def get_all_payments(self) -> list[Payment]:
        with self._lock:
            return list(self.payments.values())

    def get_all_debtors(self) -> list[Debtor]:
        with self._lock:
            return list(self.debtors.values())

    def get_pending_payments(self) -> list[Payment]:
        """Get PENDING entries awaiting cash confirmation (EXTRA excluded)."""
        with self._lock:
            return [
                p
                for p in self.payments.values()
                if p.status == PaymentStatus.PENDING and p.payment_type != PaymentType.EXTRA
            ]

    def get_active_contracts(self) -> list[Contract]:
        """Get approved, non-deleted contracts regardless of completion."""
        with self._lock:
            return [c for c in self.contracts.values() if c.is_active and not c.is_deleted]

    def get_open_contracts(self) -> list[Contract]:
        """Get contracts that are active, approved and not completed."""
        with self._lock:
            return [c for c in self.contracts.values() if c.is_open]

    def summary(self) -> dict[str, int]:
        """Return summary counts of all entities."""
        return {
            "customers": len(self.customers),
            "employees": len(self.employees),
            "contracts": len(self.contracts),
            "payments": len(self.payments),
            "balances": len(self.balances),
            "debtors": len(self.debtors),
            "notes": len(self.notes),
            "audit_log": len(self.audit_log),
        }

    def snapshot(self) -> dict[str, list[Any]]:
        """Export every record grouped by entity type."""
        with self._lock:
            return {
                "customers": list(self.customers.values()),
                "employees": list(self.employees.values()),
                "contracts": list(self.contracts.values()),
                "payments": list(self.payments.values()),
                "balances": list(self.balances.values()),
                "debtors": list(self.debtors.values()),
                "notes": list(self.notes.values()),
                "audit_log": list(self.audit_log),
            }
