"""Plain-text and CSV exports of a group."""
import csv
import io
import os
from datetime import datetime, timezone
from typing import Optional

from tripsplit.schemas import Group
from tripsplit.services.settlement_calculator import total_to_settle
from tripsplit.services.settlement_ledger import SettlementLedger

CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "₹")


def format_currency(amount: float) -> str:
    return f"{CURRENCY_SYMBOL}{amount:.2f}"


def settlement_summary_text(ledger: SettlementLedger, generated_at: Optional[datetime] = None) -> str:
    group = ledger.group
    generated_at = generated_at or datetime.now(timezone.utc)
    paid = ledger.paid_indices
    lines = [
        f'Settlement Summary for "{group.name}"',
        f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M')}",
        f"Total Expenses: {format_currency(sum(b.amount for b in group.bills))}",
        f"Number of Settlements: {len(ledger.settlements)}",
        "",
        "SETTLEMENTS:",
    ]
    for idx, s in enumerate(ledger.settlements):
        status = "PAID" if idx in paid else "Pending"
        lines.append(
            f"{group.member_name(s.from_member)} -> {group.member_name(s.to_member)}: "
            f"{format_currency(s.amount)} ({status})"
        )
    lines += ["", f"Total to Settle: {format_currency(total_to_settle(ledger.settlements))}"]
    return "\n".join(lines)


def bills_csv(group: Group) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["Date", "Description", "Category", "Amount", "Paid By", "Split"])
    for b in sorted(group.bills, key=lambda b: b.created_at, reverse=True):
        split = ", ".join(
            f"{group.member_name(mid)}:{weight:g}"
            for mid, weight in b.split_ratio.items() if weight > 0
        )
        writer.writerow([
            b.created_at.strftime("%Y-%m-%d %H:%M"),
            b.description,
            b.category,
            f"{b.amount:.2f}",
            group.member_name(b.paid_by),
            split,
        ])
    return output.getvalue()
