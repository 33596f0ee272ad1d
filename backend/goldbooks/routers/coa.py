from fastapi import APIRouter

from ..account_defaults import resolve_role_accounts
from ..sources import load_account_chart, load_account_chart_raw

router = APIRouter(tags=["coa"])


@router.get("/account-chart")
def account_chart():
    # Served as stored; the editor owns the format.
    return load_account_chart_raw()


@router.get("/account-chart/roles")
def account_chart_roles():
    roles, warnings = resolve_role_accounts(load_account_chart())
    return {"roles": roles, "warnings": warnings}
