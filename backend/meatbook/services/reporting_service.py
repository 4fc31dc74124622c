# Overview: Reporting facade; parses request dates, binds the configured record store, serializes summaries.

from __future__ import annotations

from datetime import date

from flask import current_app

from ..validation import ValidationError, parse_date_param
from meatbook.time_utils import today_utc
from .record_store import RecordStore, get_record_store
from .summary_service import build_daily_summary, build_range_summary, summarize_range


class ReportError(ValidationError):
    """Raised when report parameters are unusable."""
    pass


def _store(store: RecordStore | None) -> RecordStore:
    return store if store is not None else get_record_store()


def daily_report(user_id: int, day: str | date | None, *, store: RecordStore | None = None) -> dict:
    """
    Daily summary as JSON-ready dict.

    day defaults to today's UTC calendar day. Decimal values are strings.

    Raises:
        InvalidDateError: malformed date
        StoreUnavailableError: record store failed
    """
    if not isinstance(day, date):
        day = parse_date_param(day, field="date") or today_utc()

    summary = build_daily_summary(_store(store), user_id, day)
    current_app.logger.info(
        "Daily report built: user=%s day=%s transactions=%s", user_id, day, len(summary.transactions)
    )
    return summary.to_dict()


def range_report(
    user_id: int,
    start: str | date | None,
    end: str | date | None,
    *,
    store: RecordStore | None = None,
) -> dict:
    """
    One daily summary per day in [start, end] plus period totals.

    start > end yields an empty day list. Spans longer than
    MAX_REPORT_RANGE_DAYS are refused.

    Raises:
        ReportError: missing bound or span too long
        InvalidDateError: malformed date
        StoreUnavailableError: record store failed
    """
    if not isinstance(start, date):
        start = parse_date_param(start, field="from")
    if not isinstance(end, date):
        end = parse_date_param(end, field="to")
    if start is None or end is None:
        raise ReportError("from and to are required")

    max_days = int(current_app.config.get("MAX_REPORT_RANGE_DAYS", 366))
    span = (end - start).days + 1
    if span > max_days:
        raise ReportError(f"Date range too long: {span} days (max {max_days})")

    summaries = build_range_summary(_store(store), user_id, start, end)
    current_app.logger.info(
        "Range report built: user=%s from=%s to=%s days=%s", user_id, start, end, len(summaries)
    )
    return {
        "from": start.isoformat(),
        "to": end.isoformat(),
        "days": [s.to_dict() for s in summaries],
        "totals": summarize_range(summaries),
    }
