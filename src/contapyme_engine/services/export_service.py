"""Journal entry CSV export."""

from __future__ import annotations

import csv
import io
from decimal import Decimal

from contapyme_engine.calculators.types import JournalEntryCandidate
from contapyme_engine.calculators.utils import to_amount

CSV_HEADER = ["Código Cuenta", "Nombre Cuenta", "Descripción", "Debe", "Haber"]


def _format_amount(amount: Decimal) -> str:
    return f"{to_amount(amount):f}"


def journal_entry_to_csv(entry: JournalEntryCandidate) -> str:
    """Export a journal entry to CSV format.

    One row per line followed by a TOTALES row. Returns CSV content as a
    string.
    """
    output = io.StringIO()
    writer = csv.writer(output)

    writer.writerow(CSV_HEADER)

    for line in entry.lines:
        writer.writerow([
            line.account_code,
            line.account_name,
            line.description,
            _format_amount(line.debit_amount),
            _format_amount(line.credit_amount),
        ])

    writer.writerow([
        "",
        "",
        "TOTALES:",
        _format_amount(entry.total_debit),
        _format_amount(entry.total_credit),
    ])

    return output.getvalue()
