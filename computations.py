"""
Business logic and computations for TripSplit
"""
from __future__ import annotations
import logging
from collections import deque
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple, Union

from models import Expense, NetBalance, TotalSpent, Transfer
from utils import Number, cents_to_money, name_key, parse_amount, round_money, to_cents

logger = logging.getLogger(__name__)


def unique_names(names: Iterable[str]) -> List[str]:
    """Drop case-insensitive duplicates, keeping first-seen order and casing"""
    seen = set()
    out = []
    for n in names:
        k = name_key(n)
        if k in seen:
            continue
        seen.add(k)
        out.append(n)
    return out


def allocate_shares(amount: Number, participants: Sequence[str]) -> Dict[str, Decimal]:
    """
    Split `amount` equally among `participants` in whole cents.
    Leftover cents go one each to the earliest participants in list order,
    so the shares always sum to `amount` exactly.
    """
    people = unique_names(participants)
    count = len(people)
    if count == 0:
        return {}

    amount = parse_amount(amount)
    total_cents = to_cents(amount)
    base, remainder = divmod(total_cents, count)
    cents = {p: base for p in people}
    for i in range(remainder):
        cents[people[i % count]] += 1

    shares = {p: cents_to_money(c) for p, c in cents.items()}
    drift = amount - sum(shares.values())
    if drift:
        # only reachable when amount carries more than 2 dp
        shares[people[0]] += drift
    return shares


def _balance_items(balances: Union[Mapping[str, Decimal], Iterable[NetBalance]]) -> List[Tuple[str, Decimal]]:
    if isinstance(balances, Mapping):
        return [(name, round_money(v)) for name, v in balances.items()]
    return [(b.name, round_money(b.net)) for b in balances]


def compute_transfers(balances: Union[Mapping[str, Decimal], Iterable[NetBalance]]) -> List[Transfer]:
    """
    Compute transfers to settle debts.
    Greedy settlement: the largest debtor pays the largest creditor; net>0 creditor; net<0 debtor.
    Both queues are sorted once (descending, stable); a leftover goes to the back of its queue.
    """
    items = _balance_items(balances)
    creditors = deque(sorted(((p, v) for p, v in items if v > 0), key=lambda x: x[1], reverse=True))
    debtors = deque(sorted(((p, -v) for p, v in items if v < 0), key=lambda x: x[1], reverse=True))

    transfers = []
    while creditors and debtors:
        cname, camt = creditors.popleft()
        dname, damt = debtors.popleft()
        pay = round_money(min(camt, damt))
        if pay > 0:
            transfers.append(Transfer(dname, cname, pay))
        if camt - pay > 0:
            creditors.append((cname, camt - pay))
        if damt - pay > 0:
            debtors.append((dname, damt - pay))

    if creditors or debtors:
        logger.debug("settlement left unmatched balances: creditors=%s debtors=%s", list(creditors), list(debtors))
    return transfers


def compute_net(people: Sequence[str], expenses: Iterable[Expense]) -> Dict[str, Decimal]:
    """Replay expenses from zero: credit each payer, debit each participant's share"""
    net = {name_key(p): Decimal("0") for p in people}
    for e in expenses:
        net[name_key(e.payer)] += e.amount
        for p, share in allocate_shares(e.amount, e.participants).items():
            net[name_key(p)] -= share
    return net


def compute_totals(people: Sequence[str], expenses: Iterable[Expense]) -> List[TotalSpent]:
    """Sum of amounts paid per person, 0 for people who never paid"""
    paid = {name_key(p): Decimal("0") for p in people}
    for e in expenses:
        k = name_key(e.payer)
        if k in paid:
            paid[k] += e.amount
    return [TotalSpent(p, round_money(paid[name_key(p)])) for p in people]


def contribution_matrix(people: Sequence[str], expenses: Sequence[Expense]) -> Dict[str, List[Decimal]]:
    """
    Signed contribution of each person to each expense:
    +amount for the payer, -share for a participant, 0 otherwise (both when payer participates).
    """
    rows = {p: [Decimal("0.00")] * len(expenses) for p in people}
    index = {name_key(p): p for p in people}
    for col, e in enumerate(expenses):
        shares = allocate_shares(e.amount, e.participants)
        payer = index.get(name_key(e.payer))
        if payer is not None:
            rows[payer][col] += e.amount
        for p, share in shares.items():
            person = index.get(name_key(p))
            if person is not None:
                rows[person][col] -= share
    return rows
