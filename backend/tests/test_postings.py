from decimal import Decimal

from backend.goldbooks.account_defaults import resolve_role_accounts
from backend.goldbooks.journal_utils import journal_imbalance
from backend.goldbooks.periods import ReportWindow, month_window
from backend.goldbooks.postings import derive_postings, map_receipt, resolve_pending_cogs
from backend.goldbooks.validation import AccountChart

ORG = "0735559006568"


def _lines(postings):
    return [(p.account_number, p.debit, p.credit) for p in postings]


def test_purchase_with_vat(chart, make_receipt):
    receipt = make_receipt("purchase", "P-1", "2025-06-01", grand_total="1000", vat="70")
    roles, _ = resolve_role_accounts(chart)
    postings, warnings = map_receipt(receipt, "purchase", chart, roles)

    assert _lines(postings) == [
        ("1100", Decimal("1000"), Decimal("0")),
        ("2210", Decimal("70"), Decimal("0")),
        ("1010", Decimal("0"), Decimal("1070")),
    ]
    assert warnings == []


def test_purchase_without_vat_credits_payment_account_for_grand_total(chart, make_receipt):
    receipt = make_receipt("purchase", "P-1", "2025-06-01", grand_total="2500", vat="0")
    roles, _ = resolve_role_accounts(chart)
    postings, _ = map_receipt(receipt, "purchase", chart, roles)
    assert _lines(postings) == [
        ("1100", Decimal("2500"), Decimal("0")),
        ("1010", Decimal("0"), Decimal("2500")),
    ]


def test_sale_with_vat_emits_pending_cogs_pair(chart, make_receipt):
    receipt = make_receipt("sale", "S-1", "2025-06-03", grand_total="3400", vat="238")
    roles, _ = resolve_role_accounts(chart)
    postings, _ = map_receipt(receipt, "sale", chart, roles)

    assert _lines(postings[:3]) == [
        ("1010", Decimal("3638"), Decimal("0")),
        ("4000", Decimal("0"), Decimal("3400")),
        ("2200", Decimal("0"), Decimal("238")),
    ]
    cogs_dr, stock_cr = postings[3:]
    assert (cogs_dr.account_number, cogs_dr.pending_cogs_ref, cogs_dr.pending_side) == ("5000", "S-1", "debit")
    assert (stock_cr.account_number, stock_cr.pending_cogs_ref, stock_cr.pending_side) == ("1100", "S-1", "credit")


def test_payment_type_map_picks_cash_account(make_receipt):
    chart = AccountChart.model_validate(
        {
            "accounts": [
                {"accountNumber": "1000", "accountName": "เงินสดในร้าน", "type": "asset"},
                {"accountNumber": "1010", "accountName": "เงินฝากธนาคาร", "type": "asset"},
                {"accountNumber": "4000", "accountName": "ขายทอง/สินค้า", "type": "revenue"},
            ],
            "roles": {"bankOrCash": "1010", "salesRevenue": "4000"},
            "paymentTypeMap": {"cash": "1000", "transfer": "1010"},
        }
    )
    receipt = make_receipt("sale", "S-1", "2025-06-03", grand_total="500", payment_type="cash")
    roles, _ = resolve_role_accounts(chart)
    postings, warnings = map_receipt(receipt, "sale", chart, roles)
    assert _lines(postings) == [
        ("1000", Decimal("500"), Decimal("0")),
        ("4000", Decimal("0"), Decimal("500")),
    ]
    # No inventory/cogs roles: the pair is skipped silently, the sale still posts.
    assert warnings == []


def test_cogs_pair_filled_from_costing(chart, make_receipt):
    receipts = [
        make_receipt(
            "purchase", "P-1", "2025-05-28", grand_total="3000",
            products=[{"name": "ทองแท่ง", "quantity": "2", "price": "3000"}],
        ),
        make_receipt(
            "sale", "S-1", "2025-06-03", grand_total="3400",
            products=[{"name": "ทองแท่ง", "quantity": "2", "price": "3400"}],
        ),
    ]
    postings, _, _ = derive_postings(receipts, chart, ORG, month_window(2025, 6))
    sale_lines = [p for p in postings if p.reference == "S-1"]
    assert ("5000", Decimal("3000"), Decimal("0")) in _lines(sale_lines)
    assert ("1100", Decimal("0"), Decimal("3000")) in _lines(sale_lines)
    assert all(p.pending_cogs_ref is None for p in postings)


def test_unmatched_sale_keeps_zero_cogs_pair(chart, make_receipt):
    receipt = make_receipt("sale", "S-404", "2025-06-03", grand_total="100")
    roles, _ = resolve_role_accounts(chart)
    pending, _ = map_receipt(receipt, "sale", chart, roles)
    resolved = resolve_pending_cogs(pending, [])
    cogs_lines = [p for p in resolved if p.account_number in {"5000", "1100"}]
    assert _lines(cogs_lines) == [
        ("5000", Decimal("0"), Decimal("0")),
        ("1100", Decimal("0"), Decimal("0")),
    ]


def test_derived_postings_balance(chart, make_receipt):
    receipts = [
        make_receipt(
            "purchase", "P-1", "2025-06-01", grand_total="10000", vat="700",
            products=[{"name": "ทองรูปพรรณ", "weight": "15.2", "price": "10000"}],
        ),
        make_receipt(
            "sale", "S-1", "2025-06-02", grand_total="4000", vat="280",
            products=[{"name": "ทองรูปพรรณ", "weight": "3.8", "price": "4000"}],
        ),
        make_receipt("sale", "S-2", "2025-06-02", grand_total="999.99"),
    ]
    postings, _, warnings = derive_postings(receipts, chart, ORG, ReportWindow())
    assert journal_imbalance(postings) == 0
    for no in ("P-1", "S-1", "S-2"):
        assert journal_imbalance(p for p in postings if p.reference == no) == 0
    assert warnings == []


def test_missing_account_is_omitted_and_reported(make_receipt):
    chart = AccountChart.model_validate(
        {
            "accounts": [
                {"accountNumber": "1010", "accountName": "เงินฝากธนาคาร", "type": "asset"},
                {"accountNumber": "1100", "accountName": "สต๊อกทอง", "type": "asset"},
            ],
            "roles": {"inventory": "1100", "bankOrCash": "1010"},
        }
    )
    receipt = make_receipt("purchase", "P-1", "2025-06-01", grand_total="1000", vat="70")
    postings, _, warnings = derive_postings([receipt], chart, ORG, ReportWindow())

    assert _lines(postings) == [
        ("1100", Decimal("1000"), Decimal("0")),
        ("1010", Decimal("0"), Decimal("1070")),
    ]
    assert "receipt P-1: no vatInput account, posting omitted" in warnings
    assert "no account for role vatInput" in warnings


def test_legacy_chart_resolves_roles_by_account_name(legacy_chart):
    roles, warnings = resolve_role_accounts(legacy_chart)
    assert roles == {
        "inventory": "1100",
        "bankOrCash": "1010",
        "salesRevenue": "4000",
        "vatInput": "2210",
        "vatOutput": "2200",
        "cogs": "5000",
    }
    assert "role cogs resolved by account name to 5000" in warnings


def test_journal_voucher_uses_explicit_lines(chart, make_receipt):
    receipt = make_receipt(
        "capital", "JV-1", "2025-06-01",
        entries=[
            {"account": "1010-เงินฝากธนาคาร", "debit": "50000", "credit": "0"},
            {"accountNumber": "3000", "debit": 0, "credit": 50000, "description": "ลงทุนเพิ่ม"},
        ],
    )
    postings, _, warnings = derive_postings([receipt], chart, ORG, ReportWindow())
    assert _lines(postings) == [
        ("1010", Decimal("50000"), Decimal("0")),
        ("3000", Decimal("0"), Decimal("50000")),
    ]
    assert postings[1].description == "ลงทุนเพิ่ม"
    assert warnings == []


def test_neither_sale_nor_purchase_without_lines_posts_nothing(chart, make_receipt):
    receipt = make_receipt("memo", "M-1", "2025-06-01", grand_total="123")
    postings, _, _ = derive_postings([receipt], chart, ORG, ReportWindow())
    assert postings == []
