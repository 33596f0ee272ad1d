"""
Read-only access to the flat files owned by the receipt logger and the chart
editor. Anything that stops a report from being computed surfaces as
SourceUnavailable; individual corrupt receipt lines do not.
"""
from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .config import settings
from .logs import json_log
from .validation import AccountChart, Receipt

_reader = ThreadPoolExecutor(max_workers=4, thread_name_prefix="source-read")


class SourceUnavailable(Exception):
    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


@dataclass(frozen=True)
class Books:
    receipts: list[Receipt]
    chart: AccountChart
    org_tax_id: str


def _read_text(path: str, source: str, *, timeout: Optional[float] = None) -> str:
    timeout = settings.source_read_timeout if timeout is None else timeout
    fut = _reader.submit(Path(path).read_text, encoding="utf-8")
    try:
        return fut.result(timeout=timeout)
    except FuturesTimeout:
        fut.cancel()
        raise SourceUnavailable(source, f"read timed out after {timeout}s")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceUnavailable(source, str(exc))


def parse_receipt_lines(text: str) -> list[Receipt]:
    """
    One receipt per non-blank line. Lines that are not JSON objects or do not
    validate are skipped; `seq` records each receipt's position in the log.
    """
    receipts: list[Receipt] = []
    skipped = 0
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            raw = json.loads(line)
        except ValueError:
            skipped += 1
            continue
        if not isinstance(raw, dict):
            skipped += 1
            continue
        raw.pop("seq", None)
        try:
            receipts.append(Receipt.model_validate({**raw, "seq": lineno - 1}))
        except ValidationError:
            skipped += 1
    if skipped:
        json_log("warning", "receipts.lines_skipped", count=skipped)
    return receipts


def parse_account_chart(text: str) -> AccountChart:
    """
    The chart file is either a bare array of accounts or an object with
    `accounts` plus optional `roles` and `paymentTypeMap` (legacy charts keep
    the latter under `rules`).
    """
    try:
        raw = json.loads(text)
    except ValueError as exc:
        raise SourceUnavailable("account-chart", f"invalid JSON: {exc}")
    if isinstance(raw, list):
        raw = {"accounts": raw}
    if not isinstance(raw, dict):
        raise SourceUnavailable("account-chart", "expected an array or an object")
    rules = raw.get("rules")
    if "paymentTypeMap" not in raw and isinstance(rules, dict) and isinstance(rules.get("paymentTypeMap"), dict):
        raw = {**raw, "paymentTypeMap": rules["paymentTypeMap"]}
    try:
        return AccountChart.model_validate(raw)
    except ValidationError as exc:
        raise SourceUnavailable("account-chart", f"invalid chart: {exc.error_count()} errors")


def load_receipts(path: Optional[str] = None) -> list[Receipt]:
    return parse_receipt_lines(_read_text(path or settings.receipt_log_file, "receipt-log"))


def load_account_chart_raw(path: Optional[str] = None):
    text = _read_text(path or settings.account_chart_file, "account-chart")
    try:
        return json.loads(text)
    except ValueError as exc:
        raise SourceUnavailable("account-chart", f"invalid JSON: {exc}")


def load_account_chart(path: Optional[str] = None) -> AccountChart:
    return parse_account_chart(_read_text(path or settings.account_chart_file, "account-chart"))


def load_company_profile(path: Optional[str] = None) -> dict:
    # The profile is optional; a present but broken one is an error.
    p = path or settings.company_profile_file
    if not Path(p).exists():
        return {}
    text = _read_text(p, "company-profile")
    try:
        raw = json.loads(text)
    except ValueError as exc:
        raise SourceUnavailable("company-profile", f"invalid JSON: {exc}")
    return raw if isinstance(raw, dict) else {}


def org_tax_id(profile: Optional[dict] = None) -> str:
    if settings.org_tax_id:
        return settings.org_tax_id
    profile = load_company_profile() if profile is None else profile
    return str(profile.get("tax_id") or "").strip()


def load_books() -> Books:
    return Books(receipts=load_receipts(), chart=load_account_chart(), org_tax_id=org_tax_id())
