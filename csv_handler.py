"""
CSV export and import functionality for TripSplit
"""
from __future__ import annotations
import csv
from typing import List

from ledger import Ledger
from models import Expense, InvalidArgument
from utils import format_money

EXPENSE_COLUMNS = ['id', 'description', 'amount', 'payer', 'participants']


def export_expenses_to_csv(expenses: List[Expense], filepath: str) -> None:
    """
    Export expenses list to CSV file
    CSV columns: id, description, amount, payer, participants (';'-joined)
    """
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(EXPENSE_COLUMNS)
        for e in expenses:
            writer.writerow([
                e.id,
                e.description,
                format_money(e.amount),
                e.payer,
                ';'.join(e.participants),
            ])


def import_people_from_csv(filepath: str) -> List[str]:
    """
    Read names from a CSV file: the 'name' column if present, else the first column.
    Blank and duplicate handling is left to Ledger.import_people.
    """
    with open(filepath, 'r', newline='', encoding='utf-8') as f:
        rows = [r for r in csv.reader(f) if r]
    if not rows:
        return []
    header = [h.strip().lower() for h in rows[0]]
    if 'name' in header:
        col = header.index('name')
        rows = rows[1:]
    else:
        col = 0
    return [r[col] for r in rows if len(r) > col]


def import_expenses_from_csv(ledger: Ledger, filepath: str) -> int:
    """
    Replay expenses from a CSV file (export_expenses_to_csv layout) into the ledger.
    People named in a row are added first. Ids are regenerated.
    Returns the number of expenses imported.
    """
    count = 0
    with open(filepath, 'r', newline='', encoding='utf-8') as f:
        reader = csv.DictReader(f)
        # header is line 1
        for line_no, row in enumerate(reader, start=2):
            participants = [p.strip() for p in (row.get('participants') or '').split(';') if p.strip()]
            payer = (row.get('payer') or '').strip()
            try:
                ledger.import_people([payer] + participants)
                ledger.add_expense(row.get('description') or '', row.get('amount') or '', payer, participants)
            except InvalidArgument as ex:
                raise InvalidArgument(f"Row {line_no}: {ex}") from ex
            count += 1
    return count
