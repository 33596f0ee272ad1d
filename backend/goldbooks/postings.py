from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Iterable, Optional

from .account_defaults import payment_account, resolve_role_accounts
from .classifier import receipt_kind, receipt_sort_key
from .costing import CostingResult, cogs_by_receipt, replay_inventory
from .journal_utils import ZERO
from .periods import ReportWindow
from .validation import AccountChart, Receipt


@dataclass(frozen=True)
class Posting:
    account_number: str
    debit: Decimal
    credit: Decimal
    receipt: Receipt
    description: str = ""
    # Set on the COGS/inventory pair of a sale until costing fills the amount;
    # `pending_side` says which column receives it.
    pending_cogs_ref: Optional[str] = None
    pending_side: Optional[str] = None

    @property
    def date(self):
        return self.receipt.date

    @property
    def reference(self) -> str:
        return self.receipt.receipt_no or ""


def _dr(account: str, amount: Decimal, receipt: Receipt, **kw) -> Posting:
    return Posting(account_number=account, debit=amount, credit=ZERO, receipt=receipt, description=receipt.notes, **kw)


def _cr(account: str, amount: Decimal, receipt: Receipt, **kw) -> Posting:
    return Posting(account_number=account, debit=ZERO, credit=amount, receipt=receipt, description=receipt.notes, **kw)


def _label(receipt: Receipt) -> str:
    return receipt.receipt_no or f"line {receipt.seq + 1}"


def map_receipt(
    receipt: Receipt,
    kind: str,
    chart: AccountChart,
    role_accounts: dict[str, str],
) -> tuple[list[Posting], list[str]]:
    """
    Postings for one receipt. A side whose account cannot be resolved is left
    out and reported; the other sides are still posted.
    """
    postings: list[Posting] = []
    warnings: list[str] = []
    gt = receipt.grand_total
    vat = receipt.vat

    def account_for(role: str) -> Optional[str]:
        acc = role_accounts.get(role)
        if not acc:
            warnings.append(f"receipt {_label(receipt)}: no {role} account, posting omitted")
        return acc

    if kind == "purchase":
        stock = account_for("inventory")
        pay = payment_account(chart, role_accounts, receipt.payment_type)
        if not pay:
            warnings.append(f"receipt {_label(receipt)}: no bankOrCash account, posting omitted")
        if stock:
            postings.append(_dr(stock, gt, receipt))
        if vat > 0:
            vat_in = account_for("vatInput")
            if vat_in:
                postings.append(_dr(vat_in, vat, receipt))
            if pay:
                postings.append(_cr(pay, gt + vat, receipt))
        elif pay:
            postings.append(_cr(pay, gt, receipt))
        return postings, warnings

    if kind == "sale":
        pay = payment_account(chart, role_accounts, receipt.payment_type)
        if not pay:
            warnings.append(f"receipt {_label(receipt)}: no bankOrCash account, posting omitted")
        revenue = account_for("salesRevenue")
        if vat > 0:
            if pay:
                postings.append(_dr(pay, gt + vat, receipt))
            if revenue:
                postings.append(_cr(revenue, gt, receipt))
            vat_out = account_for("vatOutput")
            if vat_out:
                postings.append(_cr(vat_out, vat, receipt))
        else:
            if pay:
                postings.append(_dr(pay, gt, receipt))
            if revenue:
                postings.append(_cr(revenue, gt, receipt))

        stock = role_accounts.get("inventory")
        cogs = role_accounts.get("cogs")
        if stock and cogs:
            ref = receipt.receipt_no or ""
            postings.append(_dr(cogs, ZERO, receipt, pending_cogs_ref=ref, pending_side="debit"))
            postings.append(_cr(stock, ZERO, receipt, pending_cogs_ref=ref, pending_side="credit"))
        return postings, warnings

    # Journal vouchers and other system documents carry their own lines.
    for line in receipt.entries:
        acc = line.resolved_account_number()
        if not acc:
            warnings.append(f"receipt {_label(receipt)}: journal line without account, posting omitted")
            continue
        if line.debit == 0 and line.credit == 0:
            continue
        postings.append(
            Posting(
                account_number=acc,
                debit=line.debit,
                credit=line.credit,
                receipt=receipt,
                description=line.description or receipt.notes,
            )
        )
    return postings, warnings


def resolve_pending_cogs(postings: Iterable[Posting], movements: Iterable[dict]) -> list[Posting]:
    """
    Second pass: fill COGS/inventory pairs from the costing engine's `out`
    movements, matched on the movement's source receipt number. An unmatched
    sale keeps a zero-amount pair.
    """
    cogs = cogs_by_receipt(movements)
    out: list[Posting] = []
    for p in postings:
        if p.pending_cogs_ref is None:
            out.append(p)
            continue
        amount = cogs.get(p.pending_cogs_ref, ZERO)
        if p.pending_side == "debit":
            out.append(replace(p, debit=amount, pending_cogs_ref=None, pending_side=None))
        else:
            out.append(replace(p, credit=amount, pending_cogs_ref=None, pending_side=None))
    return out


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for s in items:
        if s not in seen:
            seen.add(s)
            out.append(s)
    return out


def derive_postings(
    receipts: Iterable[Receipt],
    chart: AccountChart,
    org_tax_id: Optional[str],
    window: ReportWindow,
) -> tuple[list[Posting], CostingResult, list[str]]:
    """
    Postings for every dated receipt up to the window end, in receipt order,
    with sale COGS filled from a full costing replay.
    """
    ordered = sorted((r for r in receipts if r.date is not None), key=receipt_sort_key)
    role_accounts, warnings = resolve_role_accounts(chart)

    pending: list[Posting] = []
    for r in ordered:
        if window.end is not None and r.date >= window.end:
            continue
        kind = receipt_kind(r, org_tax_id)
        postings, receipt_warnings = map_receipt(r, kind, chart, role_accounts)
        pending.extend(postings)
        warnings.extend(receipt_warnings)

    costing = replay_inventory(ordered, org_tax_id, window)
    resolved = resolve_pending_cogs(pending, costing.all_movements())
    return resolved, costing, _dedupe(warnings)
