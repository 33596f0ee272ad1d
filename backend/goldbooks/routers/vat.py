from typing import Optional

from fastapi import APIRouter

from .. import aggregates
from ..periods import month_year_window
from ..sources import load_receipts, org_tax_id

router = APIRouter(tags=["vat"])


@router.get("/vat-sale-report")
def vat_sale_report(month: Optional[str] = None, year: Optional[str] = None):
    window = month_year_window(month, year)
    return {"sales": aggregates.vat_sales(load_receipts(), org_tax_id(), window)}


@router.get("/vat-purchase-report")
def vat_purchase_report(month: Optional[str] = None, year: Optional[str] = None):
    window = month_year_window(month, year)
    return {"purchases": aggregates.vat_purchases(load_receipts(), org_tax_id(), window)}


@router.get("/vat-summary")
def vat_summary(month: Optional[str] = None, year: Optional[str] = None):
    window = month_year_window(month, year)
    summary = aggregates.vat_summary(load_receipts(), org_tax_id(), window)
    return {"month": f"{window.start.year:04d}-{window.start.month:02d}", **summary}
