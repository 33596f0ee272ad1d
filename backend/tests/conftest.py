import itertools
import os
import sys


# Allow running pytest from either the repo root or from within `backend/`.
# Tests import `backend.*`, which requires the repo root on sys.path.
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

import pytest

from backend.goldbooks.validation import AccountChart, Receipt

ORG_TAX_ID = "0735559006568"
SUPPLIER_TAX_ID = "0105500000001"
CUSTOMER_TAX_ID = "3100600000002"

CHART_ACCOUNTS = [
    {"accountNumber": "1000", "accountName": "เงินสดในร้าน", "note": "", "type": "asset"},
    {"accountNumber": "1010", "accountName": "เงินฝากธนาคาร", "note": "", "type": "asset"},
    {"accountNumber": "1100", "accountName": "สต๊อกทอง", "note": "", "type": "asset"},
    {"accountNumber": "2200", "accountName": "ภาษีขาย", "note": "", "type": "liability"},
    {"accountNumber": "2210", "accountName": "ภาษีซื้อ", "note": "", "type": "asset"},
    {"accountNumber": "3000", "accountName": "ทุน", "note": "", "type": "equity"},
    {"accountNumber": "4000", "accountName": "ขายทอง/สินค้า", "note": "", "type": "revenue"},
    {"accountNumber": "5000", "accountName": "ต้นทุนขาย", "note": "", "type": "expense"},
]

CHART_ROLES = {
    "inventory": "1100",
    "bankOrCash": "1010",
    "salesRevenue": "4000",
    "vatInput": "2210",
    "vatOutput": "2200",
    "cogs": "5000",
}


@pytest.fixture
def chart() -> AccountChart:
    return AccountChart.model_validate({"accounts": CHART_ACCOUNTS, "roles": CHART_ROLES})


@pytest.fixture
def legacy_chart() -> AccountChart:
    # Bare array as older chart files store it: no roles table.
    return AccountChart.model_validate({"accounts": CHART_ACCOUNTS})


@pytest.fixture
def make_receipt():
    """
    Receipt factory; log position (`seq`) follows creation order.
    """
    seq = itertools.count()

    def _make(kind: str, receipt_no: str, day: str, grand_total="0", vat="0", products=None, **extra) -> Receipt:
        raw = {
            "date": day,
            "type": kind,
            "receipt_no": receipt_no,
            "grand_total": grand_total,
            "vat": vat,
            "notes": f"{kind} {receipt_no}",
            "products": products or [],
            "seq": next(seq),
        }
        if kind == "purchase":
            raw.update(vendor_tax_id=SUPPLIER_TAX_ID, buyer_tax_id=ORG_TAX_ID)
        elif kind == "sale":
            raw.update(vendor_tax_id=ORG_TAX_ID, buyer_tax_id=CUSTOMER_TAX_ID)
        raw.update(extra)
        return Receipt.model_validate(raw)

    return _make
