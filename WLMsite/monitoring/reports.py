"""
Hourly report assembly: fetch rollups from the aggregation backend, normalize
and sort them, keep the last good result in the session, and export CSV.
"""
import logging
from datetime import date, datetime, timezone as dt_timezone

import pandas as pd
from django.db import models
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from .backends import get_backend
from .exceptions import EntryValidationError, FetchError

logger = logging.getLogger(__name__)


class ReportKind(models.TextChoices):
    WATER_LEVEL = 'water-level', 'Water Level'
    RAINFALL = 'rainfall', 'Rainfall'


class SummaryPeriod(models.TextChoices):
    DAILY = 'daily', 'Daily'
    WEEKLY = 'weekly', 'Weekly'
    MONTHLY = 'monthly', 'Monthly'


STAT_FIELDS = {
    ReportKind.WATER_LEVEL: ('avg_water_level', 'min_water_level', 'max_water_level'),
    ReportKind.RAINFALL: ('total_rainfall', 'avg_rainfall', 'max_rainfall'),
}

REPORT_FIELDS = {
    kind: ('hour_period', 'location_id', 'location_name') + stats + ('measurement_count',)
    for kind, stats in STAT_FIELDS.items()
}

SUMMARY_FIELDS = {
    kind: ('period_start', 'location_id', 'location_name') + stats + ('measurement_count',)
    for kind, stats in STAT_FIELDS.items()
}

PROCEDURES = {
    ReportKind.WATER_LEVEL: 'get_hourly_water_level_report',
    ReportKind.RAINFALL: 'get_hourly_rainfall_report',
}

EXPORT_TAGS = {
    ReportKind.WATER_LEVEL: 'water-level-hourly-report',
    ReportKind.RAINFALL: 'rainfall-hourly-report',
}

SESSION_KEY = 'hourly_reports'


def get_kind(value):
    try:
        return ReportKind(value)
    except ValueError:
        raise EntryValidationError(f"Unknown report kind: {value!r}")


def _to_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise EntryValidationError(f"Invalid date: {value!r}")


def expand_date_range(start_date, end_date):
    """
    Calendar dates (inclusive) -> ISO-8601 UTC bounds.

    ('2024-01-01', '2024-01-01') -> ('2024-01-01T00:00:00Z', '2024-01-01T23:59:59Z')
    """
    start = _to_date(start_date)
    end = _to_date(end_date)
    if start > end:
        raise EntryValidationError("Start date must be on or before the end date.")
    return f"{start.isoformat()}T00:00:00Z", f"{end.isoformat()}T23:59:59Z"


def normalize_location_filter(value):
    # "" ต้องกลายเป็น None (ไม่กรอง) ห้ามส่ง string ว่างไปให้ backend
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _parse_timestamp(value):
    parsed = parse_datetime(value) if isinstance(value, str) else value
    if not isinstance(parsed, datetime):
        raise ValueError(f"not a timestamp: {value!r}")
    if timezone.is_naive(parsed):
        parsed = parsed.replace(tzinfo=dt_timezone.utc)
    return parsed.astimezone(dt_timezone.utc)


def normalize_row(kind, row, fields=None):
    fields = fields or REPORT_FIELDS[kind]
    out = {}
    try:
        for field in fields:
            value = row.get(field)
            if field in ('hour_period', 'period_start'):
                value = _parse_timestamp(value)
            elif field in ('location_id', 'location_name'):
                value = '' if value is None else str(value)
            elif field == 'measurement_count':
                value = int(value or 0)
            else:
                value = float(value) if value is not None else None
            out[field] = value
    except (AttributeError, TypeError, ValueError) as e:
        raise FetchError(f"Malformed {kind} rollup row: {e}") from e
    return out


def sort_rows(rows, key_field='hour_period'):
    return sorted(rows, key=lambda row: (row[key_field], row['location_name']))


def fetch_hourly_report(kind, start_date, end_date, location_filter=None, backend=None):
    """
    Fetch hourly rollups for ``kind`` between two calendar dates.

    Returns rows sorted by (hour_period, location_name). An empty list means
    the query worked but found nothing. Raises EntryValidationError for bad
    input and FetchError when the backend fails.
    """
    kind = get_kind(kind)
    start, end = expand_date_range(start_date, end_date)
    location_filter = normalize_location_filter(location_filter)

    if backend is None:
        backend = get_backend()
    procedure = getattr(backend, PROCEDURES[kind])

    logger.info("Fetching %s report %s..%s location=%s", kind.value, start, end, location_filter)
    raw_rows = procedure(start, end, location_filter)
    rows = [normalize_row(kind, row) for row in raw_rows or []]
    return sort_rows(rows)


def serialize_rows(rows):
    """JSON-safe copy of rows (timestamps as ISO strings)."""
    serialized = []
    for row in rows:
        item = {}
        for field, value in row.items():
            item[field] = value.isoformat() if isinstance(value, datetime) else value
        serialized.append(item)
    return serialized


def remember_report(session, kind, rows, params):
    reports = session.get(SESSION_KEY, {})
    reports[ReportKind(kind).value] = {
        'rows': serialize_rows(rows),
        'params': params,
    }
    session[SESSION_KEY] = reports


def last_report(session, kind):
    """(rows, params) of the last successful fetch for ``kind``, or ([], None)."""
    entry = session.get(SESSION_KEY, {}).get(ReportKind(kind).value)
    if not entry:
        return [], None
    try:
        rows = [normalize_row(kind, row) for row in entry['rows']]
    except FetchError:
        logger.warning("Discarding unreadable %s report cached in session", kind)
        return [], None
    return rows, entry.get('params')


def _to_csv(rows, fields):
    frame = pd.DataFrame(serialize_rows(rows), columns=list(fields))
    return frame.to_csv(index=False, lineterminator='\n')


def export_csv(kind, rows):
    """Comma-delimited text: header of field names, then one line per row."""
    return _to_csv(rows, REPORT_FIELDS[get_kind(kind)])


def export_summary_csv(kind, rows):
    return _to_csv(rows, SUMMARY_FIELDS[get_kind(kind)])


def export_filename(kind, today=None, tag=None):
    today = today or timezone.localdate()
    tag = tag or EXPORT_TAGS[get_kind(kind)]
    return f"{tag}-{today.isoformat()}.csv"


def _period_start(stamps, period):
    days = stamps.dt.floor('D')
    if period == SummaryPeriod.DAILY:
        return days
    if period == SummaryPeriod.WEEKLY:
        return days - pd.to_timedelta(stamps.dt.weekday, unit='D')
    return days - pd.to_timedelta(stamps.dt.day - 1, unit='D')


def summarize_rollups(kind, rows, period=SummaryPeriod.DAILY):
    """
    Fold hourly rollups into daily/weekly/monthly buckets per location.

    Averages are weighted by measurement_count so the result matches what an
    aggregation over the raw readings would give. Weeks start on Monday; all
    buckets are in UTC.
    """
    kind = get_kind(kind)
    try:
        period = SummaryPeriod(period)
    except ValueError:
        raise EntryValidationError(f"Unknown summary period: {period!r}")
    if not rows:
        return []

    df = pd.DataFrame(rows, columns=list(REPORT_FIELDS[kind]))
    df['hour_period'] = pd.to_datetime(df['hour_period'], utc=True)
    df['period_start'] = _period_start(df['hour_period'], period)

    if kind == ReportKind.WATER_LEVEL:
        df['weighted'] = df['avg_water_level'] * df['measurement_count']
        grouped = df.groupby(['period_start', 'location_id', 'location_name'], sort=True).agg(
            weighted=('weighted', 'sum'),
            measurement_count=('measurement_count', 'sum'),
            min_water_level=('min_water_level', 'min'),
            max_water_level=('max_water_level', 'max'),
        )
        avg_field = 'avg_water_level'
    else:
        df['weighted'] = df['avg_rainfall'] * df['measurement_count']
        grouped = df.groupby(['period_start', 'location_id', 'location_name'], sort=True).agg(
            weighted=('weighted', 'sum'),
            measurement_count=('measurement_count', 'sum'),
            total_rainfall=('total_rainfall', 'sum'),
            max_rainfall=('max_rainfall', 'max'),
        )
        avg_field = 'avg_rainfall'

    grouped = grouped.reset_index()
    counts = grouped['measurement_count'].where(grouped['measurement_count'] > 0)
    grouped[avg_field] = grouped['weighted'] / counts

    summary = []
    for record in grouped.to_dict('records'):
        row = {}
        for field in SUMMARY_FIELDS[kind]:
            value = record[field]
            if field == 'period_start':
                value = value.to_pydatetime()
            elif field == 'measurement_count':
                value = int(value)
            elif field not in ('location_id', 'location_name'):
                value = None if pd.isna(value) else float(value)
            row[field] = value
        summary.append(row)
    return sort_rows(summary, key_field='period_start')
