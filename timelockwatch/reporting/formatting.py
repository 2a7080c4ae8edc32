"""
timelockwatch/reporting/formatting.py
Display helpers over a MonitorReport.

Everything here is post-processing: relative time labels, address display
names, raw/decoded toggles and substring filters. Nothing feeds back into
decoding or correlation.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Mapping, Optional

from dateutil.relativedelta import relativedelta
from eth_utils import is_address, to_checksum_address

from timelockwatch.monitor import MonitorReport


# mean Gregorian month, 400-year cycle
_DAYS_PER_MONTH = 146097 / 4800


def _round(x: float) -> int:
    return int(x + 0.5)


def _humanize(earlier: datetime, later: datetime) -> str:
    # Each unit is rounded before it is compared, as moment.js `from` does.
    calendar = relativedelta(later, earlier)
    whole_months = calendar.years * 12 + calendar.months
    rest = (later - (earlier + relativedelta(months=whole_months))).total_seconds()
    elapsed = _round(whole_months * _DAYS_PER_MONTH) * 86400 + rest
    month_span = whole_months + rest / 86400 / _DAYS_PER_MONTH

    seconds = _round(elapsed)
    minutes = _round(elapsed / 60)
    hours = _round(elapsed / 3600)
    days = _round(elapsed / 86400)
    months = _round(month_span)
    years = _round(month_span / 12)

    if seconds < 45:
        return "a few seconds"
    if minutes <= 1:
        return "a minute"
    if minutes < 45:
        return f"{minutes} minutes"
    if hours <= 1:
        return "an hour"
    if hours < 22:
        return f"{hours} hours"
    if days <= 1:
        return "a day"
    if days < 26:
        return f"{days} days"
    if months <= 1:
        return "a month"
    if months < 11:
        return f"{months} months"
    if years <= 1:
        return "a year"
    return f"{years} years"


def relative_time(timestamp: int, now: Optional[float] = None) -> str:
    """'in 3 hours' / '2 days ago' for a unix timestamp relative to ``now``."""
    now = time.time() if now is None else now
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    reference = datetime.fromtimestamp(now, tz=timezone.utc)
    if moment > reference:
        return f"in {_humanize(reference, moment)}"
    return f"{_humanize(moment, reference)} ago"


def eta_label(eta: int, now: Optional[float] = None) -> str:
    return f"{eta} ({relative_time(eta, now)})"


def display_address(address: str, names: Mapping[str, str]) -> str:
    name = names.get(address.lower())
    if name:
        return name
    return to_checksum_address(address) if is_address(address) else address


@dataclass(frozen=True)
class ReportRow:
    status: str  # empty for cancel/execute rows
    kind: str
    hash: str
    url: str
    timelock: str
    age: str
    target: str
    value: str
    signature: str
    data: str
    eta: str


def build_rows(
    report: MonitorReport,
    names: Mapping[str, str],
    explorer_url: str = "https://etherscan.io",
    now: Optional[float] = None,
    raw_data: bool = False,
    raw_target: bool = False,
) -> List[ReportRow]:
    now = time.time() if now is None else now
    rows = []
    for op in report.operations:
        status = report.status_of(op)
        rows.append(ReportRow(
            status=str(status) if status is not None else "",
            kind=op.kind.value,
            hash=op.source_hash,
            url=f"{explorer_url}/tx/{op.source_hash}",
            timelock=display_address(op.timelock, names) if op.timelock else "",
            age=relative_time(op.timestamp, now),
            target=op.target if raw_target else display_address(op.target, names),
            value=str(op.value),
            signature=op.signature,
            data=op.raw_data if raw_data else op.data_display,
            eta=eta_label(op.eta, now),
        ))
    return rows


def filter_rows(rows: Iterable[ReportRow], signature: str = "", kind: str = "") -> List[ReportRow]:
    """Case-insensitive substring filters on the function signature and the operation kind."""
    signature = signature.lower()
    kind = kind.lower()
    return [
        row for row in rows
        if signature in row.signature.lower() and kind in row.kind.lower()
    ]
