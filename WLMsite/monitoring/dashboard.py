import logging
from datetime import timedelta, timezone as dt_timezone

from django.utils import timezone

from .exceptions import FetchError
from .registry import list_locations
from .reports import ReportKind, SummaryPeriod, fetch_hourly_report, summarize_rollups
from .thresholds import LevelStatus, evaluate_for_location

logger = logging.getLogger(__name__)


def location_statuses():
    """Latest water level and threshold status for every location."""
    statuses = []
    for location in list_locations():
        latest = location.water_level_measurements.order_by('-recorded_at').first()
        status = evaluate_for_location(latest.water_level, location) if latest else None
        statuses.append({
            'location': location,
            'latest': latest,
            'status': status,
        })
    return statuses


def build_dashboard(now=None, backend=None):
    now = now or timezone.now()
    today = now.astimezone(dt_timezone.utc).date()

    statuses = location_statuses()
    context = {
        'statuses': statuses,
        'critical_alerts': [s for s in statuses if s['status'] == LevelStatus.CRITICAL],
        'low_alerts': [s for s in statuses if s['status'] == LevelStatus.LOW],
        'hourly_levels': [],
        'daily_levels': [],
        'daily_rainfall': [],
        'fetch_error': None,
    }

    try:
        # 24 ชั่วโมงล่าสุด (รายชั่วโมง)
        since = now - timedelta(hours=24)
        hourly = fetch_hourly_report(ReportKind.WATER_LEVEL, today - timedelta(days=1), today, backend=backend)
        context['hourly_levels'] = [row for row in hourly if row['hour_period'] >= since]

        # 7 วันล่าสุด (รายวัน)
        week_start = today - timedelta(days=6)
        context['daily_levels'] = summarize_rollups(
            ReportKind.WATER_LEVEL,
            fetch_hourly_report(ReportKind.WATER_LEVEL, week_start, today, backend=backend),
            SummaryPeriod.DAILY,
        )
        context['daily_rainfall'] = summarize_rollups(
            ReportKind.RAINFALL,
            fetch_hourly_report(ReportKind.RAINFALL, week_start, today, backend=backend),
            SummaryPeriod.DAILY,
        )
    except FetchError as e:
        logger.warning("Dashboard aggregation unavailable: %s", e)
        context['fetch_error'] = str(e)

    return context
