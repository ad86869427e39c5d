from unittest import mock

import requests
from django.conf import settings
from django.db import OperationalError
from django.db.models.query import QuerySet
from django.test import SimpleTestCase, override_settings

from monitoring.backends import OrmAggregationBackend, RemoteAggregationBackend, get_backend
from monitoring.exceptions import FetchError
from monitoring.reports import fetch_hourly_report


def fake_response(payload, status_error=None):
    response = mock.Mock()
    response.json.return_value = payload
    if status_error:
        response.raise_for_status.side_effect = status_error
    return response


@mock.patch('monitoring.backends.requests.post')
class RemoteAggregationBackendTest(SimpleTestCase):
    def setUp(self):
        self.backend = RemoteAggregationBackend('https://agg.example.org/', api_key='anon-key', timeout=30.0)

    def test_rpc_request(self, post):
        post.return_value = fake_response([])
        fetch_hourly_report('water-level', '2024-01-01', '2024-01-01', '', backend=self.backend)

        args, kwargs = post.call_args
        self.assertEqual(args[0], 'https://agg.example.org/rest/v1/rpc/get_hourly_water_level_report')
        self.assertEqual(kwargs['json'], {
            'start_date': '2024-01-01T00:00:00Z',
            'end_date': '2024-01-01T23:59:59Z',
            'location_filter': None,
        })
        self.assertEqual(kwargs['timeout'], 30.0)
        self.assertEqual(kwargs['headers']['apikey'], 'anon-key')
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer anon-key')

    def test_rainfall_procedure(self, post):
        post.return_value = fake_response([{
            'hour_period': '2024-01-01T06:00:00+00:00', 'location_id': 'x', 'location_name': 'Kala Wewa',
            'total_rainfall': '5.5', 'avg_rainfall': 2.75, 'max_rainfall': 3.5, 'measurement_count': '2',
        }])
        rows = fetch_hourly_report('rainfall', '2024-01-01', '2024-01-01', backend=self.backend)
        self.assertTrue(post.call_args[0][0].endswith('/rpc/get_hourly_rainfall_report'))
        self.assertEqual(rows[0]['total_rainfall'], 5.5)
        self.assertEqual(rows[0]['measurement_count'], 2)

    def test_timeout_is_fetch_error(self, post):
        post.side_effect = requests.exceptions.Timeout()
        with self.assertRaises(FetchError):
            self.backend.get_hourly_water_level_report('2024-01-01T00:00:00Z', '2024-01-01T23:59:59Z')

    def test_http_error_is_fetch_error(self, post):
        post.return_value = fake_response(None, status_error=requests.exceptions.HTTPError('500'))
        with self.assertRaises(FetchError):
            self.backend.get_hourly_rainfall_report('2024-01-01T00:00:00Z', '2024-01-01T23:59:59Z')

    def test_connection_error_is_fetch_error(self, post):
        post.side_effect = requests.exceptions.ConnectionError()
        with self.assertRaises(FetchError):
            self.backend.get_hourly_rainfall_report('2024-01-01T00:00:00Z', '2024-01-01T23:59:59Z')

    def test_unexpected_payload(self, post):
        post.return_value = fake_response({'message': 'function not found'})
        with self.assertRaises(FetchError):
            self.backend.get_hourly_water_level_report('2024-01-01T00:00:00Z', '2024-01-01T23:59:59Z')

    def test_invalid_json(self, post):
        response = fake_response(None)
        response.json.side_effect = ValueError('bad json')
        post.return_value = response
        with self.assertRaises(FetchError):
            self.backend.get_hourly_water_level_report('2024-01-01T00:00:00Z', '2024-01-01T23:59:59Z')

    def test_null_payload_is_empty(self, post):
        post.return_value = fake_response(None)
        self.assertEqual(
            self.backend.get_hourly_water_level_report('2024-01-01T00:00:00Z', '2024-01-01T23:59:59Z'),
            [],
        )


class GetBackendTest(SimpleTestCase):
    @override_settings(AGGREGATION_BACKEND='orm')
    def test_orm(self):
        self.assertIsInstance(get_backend(), OrmAggregationBackend)

    @override_settings(AGGREGATION_BACKEND='remote', AGGREGATION_URL='https://agg.example.org',
                       AGGREGATION_API_KEY='k', AGGREGATION_TIMEOUT=5.0)
    def test_remote(self):
        backend = get_backend()
        self.assertIsInstance(backend, RemoteAggregationBackend)
        self.assertEqual(backend.timeout, 5.0)

    @override_settings(AGGREGATION_BACKEND='remote', AGGREGATION_URL='')
    def test_remote_without_url(self):
        with self.assertRaises(FetchError):
            get_backend()

    @override_settings(AGGREGATION_BACKEND='carrier-pigeon')
    def test_unknown(self):
        with self.assertRaises(FetchError):
            get_backend()


class OrmStatementTimeoutTest(SimpleTestCase):
    def test_statement_timeout_follows_aggregation_timeout(self):
        self.assertEqual(settings.DB_STATEMENT_TIMEOUT_MS, int(settings.AGGREGATION_TIMEOUT * 1000))

    def test_cancelled_query_is_fetch_error(self):
        """query ที่ถูก DB ยกเลิกเพราะเกินเวลา ต้องกลายเป็น FetchError"""
        cancelled = OperationalError('canceling statement due to statement timeout')
        with mock.patch.object(QuerySet, '_fetch_all', side_effect=cancelled):
            with self.assertRaises(FetchError):
                OrmAggregationBackend().get_hourly_water_level_report(
                    '2024-01-01T00:00:00Z', '2024-01-01T23:59:59Z',
                )
