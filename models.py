"""
Data models for TripSplit
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Iterable, Tuple


class InvalidArgument(ValueError):
    """Malformed or referentially invalid input (empty name, unknown person, ...)"""


@dataclass(frozen=True)
class Expense:
    """Single shared expense; participants keep their first-seen order"""
    id: str
    description: str
    amount: Decimal  # rounded to 2 dp
    payer: str
    participants: Tuple[str, ...]

    def with_participants(self, participants: Iterable[str]) -> Expense:
        """Copy of this expense with the participant list replaced"""
        return replace(self, participants=tuple(participants))


@dataclass(frozen=True)
class Transfer:
    """Payment from a debtor to a creditor"""
    from_person: str
    to_person: str
    amount: Decimal


@dataclass(frozen=True)
class NetBalance:
    name: str
    net: Decimal  # positive -> owed by the group; negative -> owes the group


@dataclass(frozen=True)
class TotalSpent:
    name: str
    spent: Decimal


@dataclass(frozen=True)
class ExplanationResult:
    """Outcome of an explanation request"""
    llm_explanation: str
    algorithmic_explanation: str
    prompt: str
    used_llm: bool


@dataclass(frozen=True)
class LedgerSnapshot:
    """Consistent view of the ledger taken under one lock acquisition"""
    people: Tuple[str, ...]
    expenses: Tuple[Expense, ...]
    net_balances: Tuple[NetBalance, ...]
    transfers: Tuple[Transfer, ...]
