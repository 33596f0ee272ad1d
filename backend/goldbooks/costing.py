from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from .classifier import receipt_kind, receipt_sort_key
from .journal_utils import ZERO, fixed3, q3, to_decimal
from .periods import ReportWindow
from .validation import Product, Receipt

OPENING_DESC = "ยอดยกมา"
DOC_DESC_PREFIX = "เอกสารเลขที่"


@dataclass
class InventoryState:
    quantity: Decimal = ZERO
    total_cost: Decimal = ZERO
    avg_cost: Decimal = ZERO


@dataclass
class CostingResult:
    # Movements inside the window, opening rows first.
    movements: list[dict] = field(default_factory=list)
    # Movements replayed before the window (needed for COGS of earlier sales).
    prior_movements: list[dict] = field(default_factory=list)
    states: dict[str, InventoryState] = field(default_factory=dict)

    def all_movements(self) -> list[dict]:
        return self.prior_movements + self.movements


def line_quantity(product: Product) -> Optional[Decimal]:
    """
    `weight` when the key is present (gold is sold by weight), else
    `quantity`. None for non-stock lines (zero or non-numeric).
    """
    raw = product.weight if "weight" in product.model_fields_set else product.quantity
    qty = to_decimal(raw)
    if qty == 0:
        return None
    return qty


def _movement_desc(receipt: Receipt) -> str:
    if receipt.receipt_no:
        return f"{DOC_DESC_PREFIX} {receipt.receipt_no}"
    return receipt.category or ""


def _snapshot(inv: InventoryState) -> dict:
    return {
        "balanceQty": inv.quantity,
        "balanceAvgCost": inv.avg_cost,
        "balanceTotal": inv.total_cost,
    }


def apply_purchase(inv: InventoryState, qty: Decimal, price: Decimal) -> Decimal:
    inv.quantity = q3(inv.quantity + qty)
    inv.total_cost = q3(inv.total_cost + price)
    inv.avg_cost = q3(inv.total_cost / inv.quantity) if inv.quantity else ZERO
    return q3(price / qty)


def apply_sale(inv: InventoryState, qty: Decimal) -> tuple[Decimal, Decimal]:
    # Average cost only moves on purchases.
    unit_cost = inv.avg_cost
    cogs = q3(qty * unit_cost)
    inv.quantity = q3(inv.quantity - qty)
    inv.total_cost = q3(inv.total_cost - cogs)
    return unit_cost, cogs


def _replay_receipt(
    states: dict[str, InventoryState],
    receipt: Receipt,
    kind: str,
    out: list[dict],
) -> None:
    for product in receipt.products:
        qty = line_quantity(product)
        if qty is None:
            continue
        name = product.name
        inv = states.setdefault(name, InventoryState())
        if kind == "purchase":
            unit_cost = apply_purchase(inv, qty, product.price)
            mtype, total = "in", q3(product.price)
        else:
            unit_cost, total = apply_sale(inv, qty)
            mtype = "out"
        out.append(
            {
                "date": receipt.date,
                "type": mtype,
                "qty": q3(qty),
                "unitCost": unit_cost,
                "total": total,
                "desc": _movement_desc(receipt),
                **_snapshot(inv),
                "product": name,
                "sourceReceiptNo": receipt.receipt_no,
            }
        )


def replay_inventory(
    receipts: Iterable[Receipt],
    org_tax_id: Optional[str],
    window: ReportWindow,
) -> CostingResult:
    """
    Moving weighted-average replay over the full receipt history.

    Receipts before the window build the opening balance (one `opening` row per
    product still on hand); receipts inside the window produce `in`/`out`
    rows. Receipts after the window are ignored.
    """
    ordered = sorted(
        (r for r in receipts if r.date is not None and r.products),
        key=receipt_sort_key,
    )
    result = CostingResult()
    states = result.states

    for r in ordered:
        if not window.is_before(r.date):
            continue
        kind = receipt_kind(r, org_tax_id)
        if kind in {"sale", "purchase"}:
            _replay_receipt(states, r, kind, result.prior_movements)

    opening: list[dict] = []
    for name, inv in states.items():
        if inv.quantity == 0:
            continue
        opening.append(
            {
                "date": None,
                "type": "opening",
                "qty": inv.quantity,
                "unitCost": inv.avg_cost,
                "total": inv.total_cost,
                "desc": OPENING_DESC,
                **_snapshot(inv),
                "product": name,
                "sourceReceiptNo": None,
            }
        )

    in_window: list[dict] = []
    for r in ordered:
        if not window.contains(r.date):
            continue
        kind = receipt_kind(r, org_tax_id)
        if kind in {"sale", "purchase"}:
            _replay_receipt(states, r, kind, in_window)

    # Stock-card order: opening rows first, then by date; rows of one day stay
    # grouped per product (first-seen product order), log order within a product.
    product_order = {name: i for i, name in enumerate(states)}
    in_window.sort(key=lambda m: (m["date"], product_order[m["product"]]))
    result.movements = opening + in_window
    return result


def cogs_by_receipt(movements: Iterable[dict]) -> dict[str, Decimal]:
    """
    Cost of goods sold per sale receipt number: sum of qty * unit cost at
    sale time over the receipt's `out` movements.
    """
    out: dict[str, Decimal] = {}
    for m in movements:
        if m.get("type") != "out" or not m.get("sourceReceiptNo"):
            continue
        ref = m["sourceReceiptNo"]
        out[ref] = out.get(ref, ZERO) + q3(m["qty"] * m["unitCost"])
    return {k: q3(v) for k, v in out.items()}


def serialize_movement(m: dict) -> dict:
    # Wire format: numbers as strings fixed to 3 decimals.
    row = dict(m)
    for k in ("qty", "unitCost", "total", "balanceQty", "balanceAvgCost", "balanceTotal"):
        row[k] = fixed3(m[k])
    row["date"] = m["date"].isoformat() if m.get("date") else None
    return row


def serialize_state(name: str, inv: InventoryState) -> dict:
    return {
        "product": name,
        "quantity": fixed3(inv.quantity),
        "avgCost": fixed3(inv.avg_cost),
        "totalCost": fixed3(inv.total_cost),
    }
