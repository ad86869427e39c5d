"""
Aggregation Service backends.

Both backends expose the same two procedures:

    get_hourly_water_level_report(start_date, end_date, location_filter=None)
    get_hourly_rainfall_report(start_date, end_date, location_filter=None)

``start_date``/``end_date`` are ISO-8601 UTC strings and ``location_filter`` is
a location id or ``None``. Rows come back as plain dicts; ordering is not
guaranteed, callers sort.
"""
import logging
import uuid
from datetime import timezone as dt_timezone

import requests
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.db.models import Avg, Count, F, Max, Min, Sum
from django.db.models.functions import TruncHour
from django.utils.dateparse import parse_datetime

from .exceptions import EntryValidationError, FetchError
from .models import RainfallMeasurement, WaterLevelMeasurement

logger = logging.getLogger(__name__)


def _parse_bound(value):
    parsed = parse_datetime(value) if isinstance(value, str) else value
    if parsed is None:
        raise FetchError(f"Invalid timestamp: {value!r}")
    return parsed


class OrmAggregationBackend:
    """Computes hourly rollups from the local measurement tables."""

    def _hourly(self, model, start_date, end_date, location_filter, aggregates):
        start = _parse_bound(start_date)
        end = _parse_bound(end_date)

        qs = model.objects.filter(recorded_at__gte=start, recorded_at__lte=end)
        if location_filter:
            try:
                location_id = uuid.UUID(str(location_filter))
            except ValueError:
                # id ที่ไม่ใช่ UUID ถือเป็น input ผิด ไม่ใช่ความผิดพลาดของ DB
                raise EntryValidationError(f"Unknown location: {location_filter!r}")
            qs = qs.filter(location_id=location_id)

        # order_by() ล้าง Meta.ordering ไม่ให้ recorded_at เข้าไปใน GROUP BY
        qs = (
            qs.order_by()
            .annotate(hour_period=TruncHour('recorded_at', tzinfo=dt_timezone.utc))
            .values('hour_period', 'location_id', location_name=F('location__name'))
            .annotate(**aggregates)
        )
        try:
            return list(qs)
        except (DatabaseError, ValidationError) as e:
            logger.error("Hourly aggregation over %s failed: %s", model._meta.db_table, e)
            raise FetchError(f"Aggregation query failed: {e}") from e

    def get_hourly_water_level_report(self, start_date, end_date, location_filter=None):
        return self._hourly(
            WaterLevelMeasurement, start_date, end_date, location_filter,
            {
                'avg_water_level': Avg('water_level'),
                'min_water_level': Min('water_level'),
                'max_water_level': Max('water_level'),
                'measurement_count': Count('id'),
            },
        )

    def get_hourly_rainfall_report(self, start_date, end_date, location_filter=None):
        return self._hourly(
            RainfallMeasurement, start_date, end_date, location_filter,
            {
                'total_rainfall': Sum('rainfall_amount'),
                'avg_rainfall': Avg('rainfall_amount'),
                'max_rainfall': Max('rainfall_amount'),
                'measurement_count': Count('id'),
            },
        )


class RemoteAggregationBackend:
    """Calls the hosted backend's RPC endpoints (PostgREST style)."""

    def __init__(self, base_url, api_key='', timeout=30.0):
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.timeout = timeout

    def _headers(self):
        headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }
        if self.api_key:
            headers['apikey'] = self.api_key
            headers['Authorization'] = f'Bearer {self.api_key}'
        return headers

    def call(self, procedure, start_date, end_date, location_filter=None):
        url = f"{self.base_url}/rest/v1/rpc/{procedure}"
        payload = {
            'start_date': start_date,
            'end_date': end_date,
            'location_filter': location_filter,
        }
        try:
            response = requests.post(url, json=payload, headers=self._headers(), timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout as e:
            logger.warning("RPC %s timed out after %ss", procedure, self.timeout)
            raise FetchError(f"{procedure} timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            logger.warning("RPC %s failed: %s", procedure, e)
            raise FetchError(f"{procedure} failed: {e}") from e
        except ValueError as e:
            raise FetchError(f"{procedure} returned invalid JSON") from e

        if data is None:
            return []
        if not isinstance(data, list):
            raise FetchError(f"{procedure} returned an unexpected payload")
        return data

    def get_hourly_water_level_report(self, start_date, end_date, location_filter=None):
        return self.call('get_hourly_water_level_report', start_date, end_date, location_filter)

    def get_hourly_rainfall_report(self, start_date, end_date, location_filter=None):
        return self.call('get_hourly_rainfall_report', start_date, end_date, location_filter)


def get_backend():
    """Backend selected by the AGGREGATION_BACKEND setting."""
    name = getattr(settings, 'AGGREGATION_BACKEND', 'orm')
    if name == 'remote':
        if not settings.AGGREGATION_URL:
            raise FetchError("AGGREGATION_URL is not configured")
        return RemoteAggregationBackend(
            settings.AGGREGATION_URL,
            api_key=settings.AGGREGATION_API_KEY,
            timeout=settings.AGGREGATION_TIMEOUT,
        )
    if name != 'orm':
        raise FetchError(f"Unknown aggregation backend: {name}")
    return OrmAggregationBackend()
