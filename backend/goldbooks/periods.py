from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

from fastapi import HTTPException

MONTH_RE = re.compile(r"^\d{4}-\d{2}$")
YEAR_RE = re.compile(r"^\d{4}$")


@dataclass(frozen=True)
class ReportWindow:
    """
    Half-open date range [start, end). A missing bound is unbounded.
    """
    start: Optional[date] = None
    end: Optional[date] = None

    def contains(self, d: date) -> bool:
        if self.start is not None and d < self.start:
            return False
        if self.end is not None and d >= self.end:
            return False
        return True

    def is_before(self, d: date) -> bool:
        return self.start is not None and d < self.start


def month_window(year: int, month: int) -> ReportWindow:
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return ReportWindow(start=start, end=end)


def year_window(year: int) -> ReportWindow:
    return ReportWindow(start=date(year, 1, 1), end=date(year + 1, 1, 1))


def parse_month(raw: Optional[str]) -> tuple[int, int]:
    s = (raw or "").strip()
    if not MONTH_RE.match(s):
        raise HTTPException(status_code=400, detail="month must be YYYY-MM")
    year, month = int(s[:4]), int(s[5:7])
    if not 1 <= year <= 9998 or not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="month must be YYYY-MM")
    return year, month


def parse_period(raw: Optional[str]) -> ReportWindow:
    # Trial balance accepts a single month or a whole year.
    s = (raw or "").strip()
    if not s:
        raise HTTPException(status_code=400, detail="Missing period parameter")
    if YEAR_RE.match(s):
        year = int(s)
        if not 1 <= year <= 9998:
            raise HTTPException(status_code=400, detail="period must be YYYY or YYYY-MM")
        return year_window(year)
    if MONTH_RE.match(s):
        return month_window(*parse_month(s))
    raise HTTPException(status_code=400, detail="period must be YYYY or YYYY-MM")


def int_param(raw) -> int:
    # parseInt-style: junk and blanks read as 0 so callers can reject falsy values.
    try:
        return int(str(raw if raw is not None else "").strip())
    except ValueError:
        return 0


def month_year_window(month, year) -> ReportWindow:
    m = int_param(month)
    y = int_param(year)
    if not m or not y:
        raise HTTPException(status_code=400, detail="month and year are required")
    if not 1 <= m <= 12 or not 1 <= y <= 9998:
        raise HTTPException(status_code=400, detail="month must be 1-12 and year a 4-digit year")
    return month_window(y, m)
