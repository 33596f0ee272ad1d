from __future__ import annotations

from typing import Literal, Optional

from .validation import Receipt

ReceiptKind = Literal["sale", "purchase", "other"]


def is_sale(receipt: Receipt, org_tax_id: Optional[str]) -> bool:
    # The organization issued the receipt.
    if not org_tax_id:
        return False
    return receipt.vendor_tax_id == org_tax_id


def is_purchase(receipt: Receipt, org_tax_id: Optional[str]) -> bool:
    # The organization is the buyer and somebody else is the vendor.
    if not org_tax_id:
        return False
    return (
        receipt.buyer_tax_id == org_tax_id
        and bool(receipt.vendor_tax_id)
        and receipt.vendor_tax_id != org_tax_id
    )


def receipt_kind(receipt: Receipt, org_tax_id: Optional[str]) -> ReceiptKind:
    """
    Tax IDs decide first; receipts that are neither (journal vouchers,
    capital entries, receipts logged before tax IDs were captured) fall back
    to the explicit `type` field.
    """
    if is_sale(receipt, org_tax_id):
        return "sale"
    if is_purchase(receipt, org_tax_id):
        return "purchase"
    if receipt.type == "sale":
        return "sale"
    if receipt.type == "purchase":
        return "purchase"
    return "other"


def receipt_sort_key(receipt: Receipt) -> tuple:
    """
    The one ordering shared by costing and ledger: date ascending, then
    position in the receipt log. Use with a stable sort.
    """
    return (receipt.date, receipt.seq)
