from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from .. import aggregates
from ..periods import month_year_window
from ..sources import load_books, load_company_profile, load_receipts, org_tax_id

router = APIRouter(tags=["inventory"])

PRODUCT_TYPE_LABELS = {
    "ornament": "ทองรูปพรรณ 96.5%",
    "bullion": "ทองแท่ง 96.5%",
}
OTHER_PRODUCT_TYPE = "อื่นๆ"


def _product_type(product: Optional[str], product_options: dict) -> str:
    if not product:
        return OTHER_PRODUCT_TYPE
    for ptype, names in (product_options or {}).items():
        if isinstance(names, list) and product in names:
            return PRODUCT_TYPE_LABELS.get(ptype, ptype)
    return OTHER_PRODUCT_TYPE


def _window_or_empty_400(month, year):
    try:
        return month_year_window(month, year), None
    except HTTPException:
        return None, JSONResponse(status_code=400, content=[])


@router.get("/stock-movement")
def stock_movement(month: Optional[str] = None, year: Optional[str] = None):
    """
    Weighted-average stock card for a month: an opening row per product on
    hand, then every in/out movement. Numbers are 3-decimal strings.
    """
    window, bad_request = _window_or_empty_400(month, year)
    if bad_request is not None:
        return bad_request
    receipts = load_receipts()
    profile = load_company_profile()
    rows = aggregates.stock_movements(receipts, org_tax_id(profile), window)
    options = profile.get("productOptions") or {}
    return [{**row, "productType": _product_type(row.get("product"), options)} for row in rows]


@router.get("/stock-balance")
def stock_balance(month: Optional[str] = None, year: Optional[str] = None):
    window, bad_request = _window_or_empty_400(month, year)
    if bad_request is not None:
        return bad_request
    books = load_books()
    return aggregates.stock_balances(books.receipts, books.org_tax_id, window)
