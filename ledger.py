"""
Ledger: people, expenses and the derived net-balance vector for one trip.

The ledger is the only owner of this state. Every public method takes the
internal lock, so one instance can be shared by concurrent request handlers;
reads hand back immutable records or fresh lists, never live internals.
Balances are rebuilt from the full expense history after any removal or edit.
"""
from __future__ import annotations
import logging
import threading
import uuid
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from computations import allocate_shares, compute_net, compute_totals, compute_transfers, unique_names
from models import Expense, InvalidArgument, LedgerSnapshot, NetBalance, TotalSpent, Transfer
from utils import Number, name_key, parse_amount, round_money

logger = logging.getLogger(__name__)


class Ledger:
    """Shared-expense ledger with exact-cent balances"""

    def __init__(self):
        self._lock = threading.RLock()
        self._names: List[str] = []
        self._index: Dict[str, int] = {}  # name_key -> position in _names/_net
        self._net: List[Decimal] = []
        self._expenses: List[Expense] = []

    # ---------- People ----------
    def add_person(self, name: str) -> None:
        """Add a person; re-adding an existing name (any casing) is a no-op"""
        if name is None or not str(name).strip():
            raise InvalidArgument("Name cannot be empty.")
        with self._lock:
            k = name_key(name)
            if k in self._index:
                return
            self._index[k] = len(self._names)
            self._names.append(name)
            self._net.append(Decimal("0"))

    def import_people(self, names: Optional[Iterable[str]]) -> None:
        """Trim names, skip blanks, add the rest in order"""
        if names is None:
            return
        cleaned = [n.strip() for n in names if n is not None and n.strip()]
        with self._lock:
            for n in cleaned:
                self.add_person(n)

    def remove_person(self, name: str) -> bool:
        """
        Remove a person and every expense they paid for or took part in.
        Returns False if the person is unknown.
        """
        with self._lock:
            k = name_key(name or "")
            if k not in self._index:
                return False
            before = len(self._expenses)
            self._expenses = [
                e for e in self._expenses
                if name_key(e.payer) != k and all(name_key(p) != k for p in e.participants)
            ]
            logger.debug("removing %s cascaded to %d expense(s)", name, before - len(self._expenses))
            idx = self._index.pop(k)
            del self._names[idx]
            del self._net[idx]
            self._index = {name_key(n): i for i, n in enumerate(self._names)}
            self._recalculate_net_balances()
            return True

    # ---------- Expenses ----------
    def add_expense(self, description: str, amount: Number, payer: str, participants: Iterable[str]) -> Expense:
        """
        Record an expense paid by `payer` and shared equally by `participants`.
        The payer is always added to the participants. Returns the new record.
        """
        value = round_money(parse_amount(amount))
        if value <= 0:
            raise InvalidArgument("Amount must be positive.")
        if description is None or not description.strip():
            raise InvalidArgument("Description required.")
        with self._lock:
            payer_name = self._canonical(payer)
            if payer_name is None:
                raise InvalidArgument(f"Unknown payer {payer}. Add them first.")
            people = unique_names("" if p is None else p for p in (participants or []))
            if not people:
                raise InvalidArgument("At least one participant is required.")
            resolved = self._resolve_all(people)
            if name_key(payer_name) not in {name_key(p) for p in resolved}:
                resolved.append(payer_name)

            expense = Expense(
                id=str(uuid.uuid4()),
                description=description,
                amount=value,
                payer=payer_name,
                participants=tuple(resolved),
            )
            self._apply(expense)
            self._expenses.append(expense)
            return expense

    def remove_expense(self, expense_id: str) -> bool:
        with self._lock:
            idx = self._find(expense_id)
            if idx < 0:
                return False
            del self._expenses[idx]
            self._recalculate_net_balances()
            return True

    def update_expense_participants(self, expense_id: str, participants: Iterable[str]) -> bool:
        """
        Replace an expense's participants (payer kept). Returns False if the id is unknown;
        raises InvalidArgument if any participant is unknown.
        """
        with self._lock:
            idx = self._find(expense_id)
            if idx < 0:
                return False
            e = self._expenses[idx]
            people = unique_names(p for p in (participants or []) if p is not None and p.strip())
            if name_key(e.payer) not in {name_key(p) for p in people}:
                people.append(e.payer)
            resolved = self._resolve_all(people)
            self._expenses[idx] = e.with_participants(resolved)
            self._recalculate_net_balances()
            return True

    def clear(self) -> None:
        """Reset all state"""
        with self._lock:
            self._names.clear()
            self._index.clear()
            self._net.clear()
            self._expenses.clear()

    # ---------- Read projections ----------
    def get_people(self) -> List[str]:
        with self._lock:
            return list(self._names)

    def get_expenses(self) -> List[Expense]:
        with self._lock:
            return list(self._expenses)

    def get_net_balances(self) -> List[NetBalance]:
        with self._lock:
            return [NetBalance(n, round_money(self._net[i])) for i, n in enumerate(self._names)]

    def get_totals_spent(self) -> List[TotalSpent]:
        with self._lock:
            return compute_totals(self._names, self._expenses)

    def settle_up(self) -> List[Transfer]:
        """Fresh settlement over current balances; nothing is cached"""
        with self._lock:
            net = {n: self._net[i] for i, n in enumerate(self._names)}
        return compute_transfers(net)

    def snapshot(self) -> LedgerSnapshot:
        """People, expenses, balances and transfers from the same state"""
        with self._lock:
            return LedgerSnapshot(
                people=tuple(self.get_people()),
                expenses=tuple(self.get_expenses()),
                net_balances=tuple(self.get_net_balances()),
                transfers=tuple(self.settle_up()),
            )

    # ---------- Internals ----------
    def _canonical(self, name: str) -> Optional[str]:
        """Registered display name for `name`, or None if unknown"""
        if name is None:
            return None
        idx = self._index.get(name_key(name))
        return None if idx is None else self._names[idx]

    def _resolve_all(self, names: Iterable[str]) -> List[str]:
        resolved = []
        for n in names:
            canonical = self._canonical(n)
            if canonical is None:
                raise InvalidArgument(f"Unknown person {n}. Add them first.")
            resolved.append(canonical)
        return resolved

    def _find(self, expense_id: str) -> int:
        key = str(expense_id)
        for i, e in enumerate(self._expenses):
            if e.id == key:
                return i
        return -1

    def _apply(self, expense: Expense) -> None:
        self._net[self._index[name_key(expense.payer)]] += expense.amount
        for p, share in allocate_shares(expense.amount, expense.participants).items():
            self._net[self._index[name_key(p)]] -= share

    def _recalculate_net_balances(self) -> None:
        """Rebuild every balance from the surviving expense history"""
        net = compute_net(self._names, self._expenses)
        self._net = [net[name_key(n)] for n in self._names]
        logger.debug("recalculated %d balance(s) from %d expense(s)", len(self._net), len(self._expenses))
