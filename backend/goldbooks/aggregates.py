"""
Report payloads built from the posting stream. Every function here is a pure
function of (receipts, chart, window); nothing is cached between calls.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional

from .classifier import is_purchase, is_sale, receipt_sort_key
from .costing import replay_inventory, serialize_movement, serialize_state
from .journal_utils import ZERO
from .ledger import balance_sign, build_ledger
from .periods import ReportWindow
from .postings import derive_postings
from .validation import AccountChart, Receipt


def ledger_report(
    receipts: Iterable[Receipt],
    chart: AccountChart,
    org_tax_id: Optional[str],
    window: ReportWindow,
    account_number: Optional[str] = None,
) -> dict:
    postings, _costing, warnings = derive_postings(receipts, chart, org_tax_id, window)
    ledger = build_ledger(postings, chart, window, account_number=account_number)
    return {"ledger": ledger, "warnings": warnings}


def _split(balance: Decimal, sign: int) -> tuple[Decimal, Decimal]:
    # Normal-side balances land in the account's natural column.
    debit_side = balance * sign
    if debit_side >= 0:
        return debit_side, ZERO
    return ZERO, -debit_side


def trial_balance_rows(ledger: list[dict]) -> list[dict]:
    rows = []
    for acc in ledger:
        sign = balance_sign(acc.get("accountType"))
        debit = sum((e["debit"] for e in acc["entries"]), ZERO)
        credit = sum((e["credit"] for e in acc["entries"]), ZERO)
        opening_debit, opening_credit = _split(acc["openingBalance"], sign)
        closing_debit, closing_credit = _split(acc["closingBalance"], sign)
        rows.append(
            {
                "accountNumber": acc["accountNumber"],
                "accountName": acc["accountName"],
                "accountType": acc.get("accountType"),
                "openingDebit": opening_debit,
                "openingCredit": opening_credit,
                "debit": debit,
                "credit": credit,
                "closingDebit": closing_debit,
                "closingCredit": closing_credit,
            }
        )
    return rows


def trial_balance(
    receipts: Iterable[Receipt],
    chart: AccountChart,
    org_tax_id: Optional[str],
    window: ReportWindow,
) -> dict:
    report = ledger_report(receipts, chart, org_tax_id, window)
    rows = trial_balance_rows(report["ledger"])
    keys = ("openingDebit", "openingCredit", "debit", "credit", "closingDebit", "closingCredit")
    totals = {k: sum((r[k] for r in rows), ZERO) for k in keys}
    return {"trialBalance": rows, "totals": totals, "warnings": report["warnings"]}


def journal_rows(
    receipts: Iterable[Receipt],
    chart: AccountChart,
    org_tax_id: Optional[str],
    window: ReportWindow,
) -> dict:
    postings, _costing, warnings = derive_postings(receipts, chart, org_tax_id, window)
    by_number = chart.by_number()
    rows = []
    for p in postings:
        if not window.contains(p.date):
            continue
        if p.debit == 0 and p.credit == 0:
            continue
        acc = by_number.get(p.account_number)
        rows.append(
            {
                "date": p.date.isoformat(),
                "description": p.description,
                "reference": p.reference,
                "accountNumber": p.account_number,
                "accountName": acc.account_name if acc else "Unknown",
                "debit": p.debit,
                "credit": p.credit,
            }
        )
    return {"entries": rows, "warnings": warnings}


def stock_movements(receipts: Iterable[Receipt], org_tax_id: Optional[str], window: ReportWindow) -> list[dict]:
    costing = replay_inventory(receipts, org_tax_id, window)
    return [serialize_movement(m) for m in costing.movements]


def stock_balances(receipts: Iterable[Receipt], org_tax_id: Optional[str], window: ReportWindow) -> list[dict]:
    costing = replay_inventory(receipts, org_tax_id, window)
    return [serialize_state(name, inv) for name, inv in sorted(costing.states.items())]


def _vat_row(r: Receipt) -> dict:
    return {
        "date": r.date.isoformat() if r.date else None,
        "receipt_no": r.receipt_no,
        "vendor": r.vendor,
        "vendor_tax_id": r.vendor_tax_id,
        "buyer_name": r.buyer_name,
        "buyer_tax_id": r.buyer_tax_id,
        "grand_total": r.grand_total,
        "vat": r.vat,
        "total": r.grand_total + r.vat,
        "notes": r.notes,
    }


def _in_window(receipts: Iterable[Receipt], window: ReportWindow) -> list[Receipt]:
    dated = [r for r in receipts if r.date is not None and window.contains(r.date)]
    return sorted(dated, key=receipt_sort_key)


def vat_sales(receipts: Iterable[Receipt], org_tax_id: Optional[str], window: ReportWindow) -> list[dict]:
    return [_vat_row(r) for r in _in_window(receipts, window) if is_sale(r, org_tax_id)]


def vat_purchases(receipts: Iterable[Receipt], org_tax_id: Optional[str], window: ReportWindow) -> list[dict]:
    return [_vat_row(r) for r in _in_window(receipts, window) if is_purchase(r, org_tax_id)]


def vat_summary(receipts: Iterable[Receipt], org_tax_id: Optional[str], window: ReportWindow) -> dict:
    """
    Monthly VAT return figures (PP30): output VAT on sales less input VAT on
    purchases. A negative net is a refundable credit.
    """
    receipts = list(receipts)
    sales = vat_sales(receipts, org_tax_id, window)
    purchases = vat_purchases(receipts, org_tax_id, window)
    sales_total = sum((r["grand_total"] for r in sales), ZERO)
    sales_vat = sum((r["vat"] for r in sales), ZERO)
    purchases_total = sum((r["grand_total"] for r in purchases), ZERO)
    purchases_vat = sum((r["vat"] for r in purchases), ZERO)
    return {
        "salesCount": len(sales),
        "salesTotal": sales_total,
        "salesVat": sales_vat,
        "purchasesCount": len(purchases),
        "purchasesTotal": purchases_total,
        "purchasesVat": purchases_vat,
        "netVat": sales_vat - purchases_vat,
    }
