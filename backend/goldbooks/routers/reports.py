from typing import Annotated, Optional

from fastapi import APIRouter, HTTPException, Query

from .. import aggregates
from ..periods import ReportWindow, month_window, month_year_window, parse_month, parse_period
from ..sources import load_books

router = APIRouter(tags=["reports"])


@router.get("/ledger-report")
def ledger_report(
    month: Optional[str] = None,
    account_number: Annotated[Optional[str], Query(alias="accountNumber")] = None,
):
    """
    General ledger for one month: opening balance, entries and running
    balance per account. Always recomputed from the whole receipt log.
    """
    year, m = parse_month(month)
    account_number = (account_number or "").strip() or None
    books = load_books()
    if account_number and account_number not in books.chart.by_number():
        raise HTTPException(status_code=400, detail=f"unknown accountNumber {account_number}")
    report = aggregates.ledger_report(
        books.receipts,
        books.chart,
        books.org_tax_id,
        month_window(year, m),
        account_number=account_number,
    )
    return {"month": f"{year:04d}-{m:02d}", **report}


@router.get("/trial-balance")
def trial_balance(period: Optional[str] = None):
    window = parse_period(period)
    books = load_books()
    report = aggregates.trial_balance(books.receipts, books.chart, books.org_tax_id, window)
    return {"period": (period or "").strip(), **report}


@router.get("/journal-report")
def journal_report(month: Optional[str] = None, year: Optional[str] = None):
    # Without month/year the journal covers the whole log.
    window = month_year_window(month, year) if (month or year) else ReportWindow()
    books = load_books()
    return aggregates.journal_rows(books.receipts, books.chart, books.org_tax_id, window)
