from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from .journal_utils import to_decimal


def _to_lower_str(v):
    if v is None:
        return v
    return str(v).strip().lower()


def _to_stripped_str(v):
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _to_key(v):
    if v is None:
        return v
    return str(v).strip()


def _to_text(v):
    if v is None:
        return ""
    return str(v)


def _to_day(v):
    # Receipt dates are calendar days; tolerate ISO datetimes and junk (-> None).
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    raw = str(v).strip()[:10]
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def _to_item_list(v):
    # Hand-edited lines carry `null` or a bare value for `products`/`entries`;
    # keep the receipt and drop only the items that are not objects.
    if not isinstance(v, list):
        return []
    return [item for item in v if isinstance(item, (dict, BaseModel))]


ACCOUNT_TYPES = ("asset", "liability", "revenue", "expense", "equity", "contra-asset", "other")


def _to_account_type(v):
    s = _to_lower_str(v)
    if not s:
        return "asset"
    return s if s in ACCOUNT_TYPES else "other"


Amount = Annotated[Decimal, BeforeValidator(to_decimal)]
TaxId = Annotated[Optional[str], BeforeValidator(_to_stripped_str)]
Text = Annotated[str, BeforeValidator(_to_text)]
Key = Annotated[str, BeforeValidator(_to_key)]
OptionalKey = Annotated[Optional[str], BeforeValidator(_to_stripped_str)]
Day = Annotated[Optional[date], BeforeValidator(_to_day)]
ReceiptType = Annotated[Optional[str], BeforeValidator(_to_lower_str)]

AccountType = Annotated[
    Literal["asset", "liability", "revenue", "expense", "equity", "contra-asset", "other"],
    BeforeValidator(_to_account_type),
]
PaymentType = Annotated[Optional[str], BeforeValidator(_to_lower_str)]


class Product(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Text = ""
    # Raw on purpose: `weight` wins over `quantity` only when the key is present.
    weight: Any = None
    quantity: Any = None
    price: Amount = Decimal("0")


class JournalLine(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    account_number: OptionalKey = Field(default=None, alias="accountNumber")
    # Voucher forms store "1000-เงินสดในร้าน" in `account`.
    account: OptionalKey = None
    debit: Amount = Decimal("0")
    credit: Amount = Decimal("0")
    description: OptionalKey = None

    def resolved_account_number(self) -> Optional[str]:
        if self.account_number and str(self.account_number).strip():
            return str(self.account_number).strip()
        raw = (self.account or "").strip()
        if not raw:
            return None
        return raw.split("-", 1)[0].strip() or None


class Receipt(BaseModel):
    model_config = ConfigDict(extra="allow")

    # Position in the append-only log; the tie-break for same-day receipts.
    seq: int = 0
    date: Day = None
    type: ReceiptType = None
    receipt_no: OptionalKey = None
    category: Text = ""
    payment_type: PaymentType = None
    grand_total: Amount = Decimal("0")
    vat: Amount = Decimal("0")
    vendor: Text = ""
    vendor_tax_id: TaxId = None
    buyer_name: Text = ""
    buyer_tax_id: TaxId = None
    notes: Text = ""
    products: Annotated[list[Product], BeforeValidator(_to_item_list)] = Field(default_factory=list)
    entries: Annotated[list[JournalLine], BeforeValidator(_to_item_list)] = Field(default_factory=list)


class Account(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    account_number: Key = Field(alias="accountNumber")
    account_name: Text = Field(default="", alias="accountName")
    note: Text = ""
    type: AccountType = "asset"


class AccountChart(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    accounts: list[Account] = Field(default_factory=list)
    # Explicit role -> accountNumber mapping, e.g. {"inventory": "1100"}.
    roles: dict[str, Key] = Field(default_factory=dict)
    payment_type_map: dict[str, Key] = Field(default_factory=dict, alias="paymentTypeMap")

    def by_number(self) -> dict[str, Account]:
        return {a.account_number: a for a in self.accounts}
