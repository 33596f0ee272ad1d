from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Iterable

ZERO = Decimal("0")
Q3 = Decimal("0.001")
# Receipt amounts at or above this are typing/OCR errors, read as 0.
MAX_AMOUNT = Decimal("1e15")


def q3(v: Decimal) -> Decimal:
    # Costing rounds after every arithmetic step, not only at output.
    # Products of large quantities and costs can exceed the default 28 digits.
    with localcontext() as ctx:
        ctx.prec = 60
        return (v or ZERO).quantize(Q3, rounding=ROUND_HALF_UP)


def _in_range(d: Decimal) -> Decimal:
    if not d.is_finite() or abs(d) >= MAX_AMOUNT:
        return ZERO
    return d


def to_decimal(v) -> Decimal:
    """
    Lenient numeric parse for receipt fields written by hand or by OCR.
    Accepts numbers and numeric strings (thousands separators allowed);
    anything else, including absurd magnitudes like 1e30, is 0.
    """
    if v is None or isinstance(v, bool):
        return ZERO
    if isinstance(v, Decimal):
        return _in_range(v)
    if isinstance(v, (int, float)):
        try:
            d = Decimal(str(v))
        except InvalidOperation:
            return ZERO
        return _in_range(d)
    raw = str(v).strip().replace(",", "")
    if not raw:
        return ZERO
    try:
        d = Decimal(raw)
    except InvalidOperation:
        return ZERO
    return _in_range(d)


def fixed3(v: Decimal) -> str:
    # `+ ZERO` folds -0.000 into 0.000.
    return f"{q3(v) + ZERO:.3f}"


def journal_imbalance(postings: Iterable) -> Decimal:
    """
    Debits minus credits over a set of postings. Zero for a balanced journal.
    """
    diff = ZERO
    for p in postings:
        diff += (p.debit or ZERO) - (p.credit or ZERO)
    return diff
