from __future__ import annotations

from typing import Optional

from .validation import Account, AccountChart

ROLES = (
    "inventory",
    "bankOrCash",
    "salesRevenue",
    "vatInput",
    "vatOutput",
    "cogs",
)

# Legacy charts have no role table; match on account name instead. Keep the
# candidates narrow: "ขาย" alone also matches ภาษีขาย and ต้นทุนขาย.
ROLE_NAME_KEYWORDS = {
    "inventory": ("สต๊อก", "สต็อก", "สินค้าคงเหลือ"),
    "bankOrCash": ("เงินฝากธนาคาร", "ธนาคาร", "เงินสด"),
    "salesRevenue": ("ขายทอง", "รายได้จากการขาย"),
    "vatInput": ("ภาษีซื้อ",),
    "vatOutput": ("ภาษีขาย",),
    "cogs": ("ต้นทุนขาย",),
}


def _find_account_by_keywords(accounts: list[Account], keywords: tuple[str, ...]) -> Optional[Account]:
    for kw in keywords:
        for acc in accounts:
            if kw in (acc.account_name or ""):
                return acc
    return None


def resolve_role_accounts(chart: AccountChart) -> tuple[dict[str, str], list[str]]:
    """
    role -> accountNumber for every role that resolves, plus warnings.

    The chart's explicit `roles` table wins. A role that is unmapped (or
    mapped to an account missing from the chart) falls back to the first
    account whose name contains one of the role's keywords; both the fallback
    and a total miss are reported.
    """
    by_number = chart.by_number()
    out: dict[str, str] = {}
    warnings: list[str] = []

    for role in ROLES:
        mapped = chart.roles.get(role)
        if mapped and mapped in by_number:
            out[role] = mapped
            continue
        if mapped:
            warnings.append(f"role {role} maps to unknown account {mapped}")

        acc = _find_account_by_keywords(chart.accounts, ROLE_NAME_KEYWORDS.get(role, ()))
        if acc:
            out[role] = acc.account_number
            warnings.append(f"role {role} resolved by account name to {acc.account_number}")
        else:
            warnings.append(f"no account for role {role}")
    return out, warnings


def payment_account(
    chart: AccountChart,
    role_accounts: dict[str, str],
    payment_type: Optional[str],
) -> Optional[str]:
    # cash / transfer can settle to different accounts; default is the bankOrCash role.
    if payment_type:
        mapped = chart.payment_type_map.get(payment_type)
        if mapped and mapped in chart.by_number():
            return mapped
    return role_accounts.get("bankOrCash")
