"""
Excel export functionality for TripSplit
"""
from __future__ import annotations

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from computations import contribution_matrix
from ledger import Ledger

MONEY_FORMAT = "0.00"


def _style_header(ws, row=1):
    """Apply header styling to worksheet row"""
    header_font = Font(bold=True, color="FFFFFF")
    fill = PatternFill("solid", fgColor="4F81BD")
    align = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="A0A0A0")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    for cell in ws[row]:
        cell.font = header_font
        cell.fill = fill
        cell.alignment = align
        cell.border = border


def _autosize_columns(ws, min_width=10, max_width=45):
    """Auto-size columns based on content"""
    for col in range(1, ws.max_column + 1):
        letter = get_column_letter(col)
        max_len = 0
        for cell in ws[letter]:
            if cell.value is None:
                continue
            max_len = max(max_len, len(str(cell.value)))
        ws.column_dimensions[letter].width = max(min_width, min(max_width, max_len + 2))


def _money_columns(ws, first_col: int, last_col: int):
    for r in range(2, ws.max_row + 1):
        for c in range(first_col, last_col + 1):
            ws.cell(r, c).number_format = MONEY_FORMAT


def export_excel(ledger: Ledger, filepath: str) -> None:
    """
    Export ledger to Excel file with three sheets:
    - Contributions: person x expense signed amounts plus a Net column
    - Summary: paid and net per person
    - Transfers: settlement payments
    """
    wb = Workbook()
    # remove default sheet
    wb.remove(wb.active)

    people = ledger.get_people()
    expenses = ledger.get_expenses()
    nets = {b.name: b.net for b in ledger.get_net_balances()}

    ws = wb.create_sheet("Contributions")
    ws.append(["Person"] + [f"{e.description} ({e.payer})" for e in expenses] + ["Net"])
    _style_header(ws, 1)
    ws.freeze_panes = "B2"
    matrix = contribution_matrix(people, expenses)
    for p in people:
        ws.append([p] + matrix[p] + [nets[p]])
    _money_columns(ws, 2, len(expenses) + 2)
    _autosize_columns(ws)

    ws = wb.create_sheet("Summary")
    ws.append(["Person", "Paid", "Net"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for t in ledger.get_totals_spent():
        ws.append([t.name, t.spent, nets[t.name]])
    _money_columns(ws, 2, 3)
    _autosize_columns(ws)

    ws = wb.create_sheet("Transfers")
    ws.append(["From (Debtor)", "To (Creditor)", "Amount"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for t in ledger.settle_up():
        ws.append([t.from_person, t.to_person, t.amount])
    _money_columns(ws, 3, 3)
    _autosize_columns(ws)

    wb.save(filepath)
