from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional

from .classifier import receipt_sort_key
from .journal_utils import ZERO
from .periods import ReportWindow
from .postings import Posting
from .validation import AccountChart

CREDIT_NORMAL_TYPES = {"liability", "revenue", "equity", "contra-asset"}


def balance_sign(account_type: Optional[str]) -> int:
    # +1: debit-positive (asset, expense); -1: credit-positive.
    return -1 if (account_type or "asset") in CREDIT_NORMAL_TYPES else 1


def signed_amount(p: Posting, sign: int) -> Decimal:
    return sign * (p.debit - p.credit)


def _account_meta(chart: AccountChart, number: str) -> tuple[str, str]:
    acc = chart.by_number().get(number)
    if acc is None:
        return "Unknown", "asset"
    return acc.account_name, acc.type


def build_ledger(
    postings: Iterable[Posting],
    chart: AccountChart,
    window: ReportWindow,
    account_number: Optional[str] = None,
) -> list[dict]:
    """
    Per-account ledger for the window.

    Opening balance is the signed sum of postings dated before the window;
    running balances accumulate from it in receipt order (date, then log
    position). The account filter is applied only after everything is built.
    """
    by_number = chart.by_number()
    accounts: dict[str, dict] = {}

    def ledger_for(number: str) -> dict:
        if number not in accounts:
            name, acc_type = _account_meta(chart, number)
            accounts[number] = {
                "accountNumber": number,
                "accountName": name,
                "accountType": acc_type,
                "openingBalance": ZERO,
                "closingBalance": ZERO,
                "entries": [],
            }
        return accounts[number]

    # Stable re-sort with the shared comparator; generation order breaks ties.
    ordered = sorted((p for p in postings if p.date is not None), key=lambda p: receipt_sort_key(p.receipt))
    for p in ordered:
        if not (window.is_before(p.date) or window.contains(p.date)):
            continue
        row = ledger_for(p.account_number)
        delta = signed_amount(p, balance_sign(row["accountType"]))
        row["closingBalance"] += delta
        if window.is_before(p.date):
            row["openingBalance"] += delta
            continue
        row["entries"].append(
            {
                "date": p.date.isoformat(),
                "description": p.description,
                "reference": p.reference,
                "debit": p.debit,
                "credit": p.credit,
                "runningBalance": row["closingBalance"],
            }
        )

    out = [r for r in accounts.values() if r["openingBalance"] != 0 or r["entries"]]

    # Chart order first, then accounts the chart does not know.
    order = {n: i for i, n in enumerate(by_number)}
    out.sort(key=lambda r: (order.get(r["accountNumber"], len(order)), r["accountNumber"]))

    if account_number is not None:
        out = [r for r in out if r["accountNumber"] == account_number]
    return out
