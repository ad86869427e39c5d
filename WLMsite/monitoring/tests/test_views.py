import uuid
from unittest import mock

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from monitoring.exceptions import FetchError
from monitoring.models import Role, WaterLevelMeasurement

from .helpers import make_location, make_user

WATER_ROWS = [
    {'hour_period': '2024-01-01T10:00:00Z', 'location_id': 'a', 'location_name': 'Mahaweli Dam',
     'avg_water_level': 16.2, 'min_water_level': 16.0, 'max_water_level': 16.4, 'measurement_count': 2},
]
RAIN_ROWS = [
    {'hour_period': '2024-01-01T10:00:00Z', 'location_id': 'a', 'location_name': 'Mahaweli Dam',
     'total_rainfall': 4.5, 'avg_rainfall': 2.25, 'max_rainfall': 3.0, 'measurement_count': 2},
]
REPORT_QUERY = {'start_date': '2024-01-01', 'end_date': '2024-01-01', 'location': ''}


def fake_backend(water=WATER_ROWS, rain=RAIN_ROWS):
    backend = mock.Mock()
    backend.get_hourly_water_level_report.return_value = list(water)
    backend.get_hourly_rainfall_report.return_value = list(rain)
    return backend


class MonitoringViewTestCase(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.location = make_location('Mahaweli Dam', min_level=15.0, max_level=20.0)
        cls.officer = make_user('officer@irrigation.gov', Role.OFFICER, name='Sarah Johnson')
        cls.viewer = make_user('viewer@irrigation.gov', Role.VIEWER, name='Mike Wilson')

    def login(self, user):
        self.client.force_login(user)


class AccessTest(MonitoringViewTestCase):
    def test_landing_is_public(self):
        self.assertEqual(self.client.get(reverse('landing')).status_code, 200)

    def test_pages_require_login(self):
        for name in ('home', 'dashboard', 'hourly_reports', 'reports', 'water_level_entry'):
            with self.subTest(name=name):
                response = self.client.get(reverse(name))
                self.assertRedirects(response, f"{reverse('login')}?next={reverse(name)}")

    def test_viewer_cannot_open_entry_pages(self):
        self.login(self.viewer)
        self.assertEqual(self.client.get(reverse('water_level_entry')).status_code, 403)
        self.assertEqual(self.client.get(reverse('rainfall_entry')).status_code, 403)

    def test_viewer_nav_hides_entry(self):
        self.login(self.viewer)
        response = self.client.get(reverse('home'))
        self.assertNotContains(response, reverse('water_level_entry'))
        self.assertContains(response, reverse('hourly_reports'))


class EntryViewTest(MonitoringViewTestCase):
    def test_form_carries_token_and_locations(self):
        self.login(self.officer)
        response = self.client.get(reverse('water_level_entry'))
        self.assertContains(response, 'name="submission_token"')
        self.assertContains(response, 'Mahaweli Dam')
        self.assertContains(response, 'id="locations-data"')

    def test_submit_and_resubmit(self):
        self.login(self.officer)
        data = {
            'location': str(self.location.pk),
            'water_level': '14.2',
            'measurement_type': 'Manual',
            'submission_token': str(uuid.uuid4()),
        }
        response = self.client.post(reverse('water_level_entry'), data, follow=True)
        self.assertRedirects(response, reverse('water_level_entry'))
        self.assertContains(response, 'Water level measurement recorded successfully')

        response = self.client.post(reverse('water_level_entry'), data, follow=True)
        self.assertContains(response, 'This measurement was already recorded.')
        self.assertEqual(WaterLevelMeasurement.objects.count(), 1)

    def test_invalid_submission_rerenders(self):
        self.login(self.officer)
        response = self.client.post(reverse('rainfall_entry'), {
            'location': str(self.location.pk),
            'rainfall_amount': '',
            'duration_hours': '1',
            'measurement_type': 'Manual',
            'submission_token': str(uuid.uuid4()),
        })
        self.assertEqual(response.status_code, 200)
        self.assertIn('rainfall_amount', response.context['form'].errors)


@mock.patch('monitoring.reports.get_backend')
class HourlyReportViewTest(MonitoringViewTestCase):
    def test_generate_then_export(self, get_backend):
        get_backend.return_value = fake_backend()
        self.login(self.viewer)

        response = self.client.get(reverse('hourly_reports'), REPORT_QUERY)
        self.assertEqual(len(response.context['water_level_rows']), 1)
        self.assertEqual(len(response.context['rainfall_rows']), 1)
        self.assertContains(response, 'Hourly reports generated successfully')

        response = self.client.get(reverse('export_hourly_report', args=['water-level']))
        self.assertEqual(response['Content-Type'], 'text/csv; charset=utf-8')
        self.assertIn('water-level-hourly-report-', response['Content-Disposition'])
        lines = response.content.decode().splitlines()
        self.assertTrue(lines[0].startswith('hour_period,location_id,location_name,avg_water_level'))
        self.assertIn('Mahaweli Dam', lines[1])

    def test_failed_fetch_keeps_previous_rows(self, get_backend):
        get_backend.return_value = fake_backend()
        self.login(self.viewer)
        self.client.get(reverse('hourly_reports'), REPORT_QUERY)

        get_backend.return_value.get_hourly_water_level_report.side_effect = FetchError('timeout')
        response = self.client.get(reverse('hourly_reports'), {**REPORT_QUERY, 'start_date': '2023-12-01'})
        self.assertContains(response, 'Failed to generate reports')
        self.assertEqual(len(response.context['water_level_rows']), 1)
        self.assertEqual(response.context['report_params']['start_date'], '2024-01-01')

        # export ยังใช้ข้อมูลชุดล่าสุดที่ดึงสำเร็จ
        response = self.client.get(reverse('export_hourly_report', args=['rainfall']))
        self.assertIn('Mahaweli Dam', response.content.decode())

    def test_empty_result_replaces_previous(self, get_backend):
        get_backend.return_value = fake_backend()
        self.login(self.viewer)
        self.client.get(reverse('hourly_reports'), REPORT_QUERY)

        get_backend.return_value = fake_backend(water=[], rain=[])
        response = self.client.get(reverse('hourly_reports'), REPORT_QUERY)
        self.assertEqual(response.context['water_level_rows'], [])
        self.assertContains(response, 'No water level data found for the selected period')

    def test_export_without_data(self, get_backend):
        self.login(self.viewer)
        response = self.client.get(reverse('export_hourly_report', args=['rainfall']))
        self.assertRedirects(response, reverse('hourly_reports'))
        get_backend.assert_not_called()

    def test_export_unknown_kind(self, get_backend):
        self.login(self.viewer)
        response = self.client.get(reverse('export_hourly_report', args=['temperature']))
        self.assertRedirects(response, reverse('hourly_reports'))

    def test_reversed_dates_rejected_by_form(self, get_backend):
        self.login(self.viewer)
        response = self.client.get(reverse('hourly_reports'), {**REPORT_QUERY, 'start_date': '2024-02-01'})
        self.assertTrue(response.context['form'].errors)
        get_backend.assert_not_called()


@mock.patch('monitoring.reports.get_backend')
class PeriodReportViewTest(MonitoringViewTestCase):
    def test_default_summary(self, get_backend):
        get_backend.return_value = fake_backend()
        self.login(self.viewer)
        response = self.client.get(reverse('reports'))
        self.assertEqual(response.status_code, 200)
        summary = response.context['water_level_summary']
        self.assertEqual(len(summary), 1)
        self.assertEqual(summary[0]['measurement_count'], 2)

    def test_summary_export(self, get_backend):
        get_backend.return_value = fake_backend()
        self.login(self.viewer)
        response = self.client.get(reverse('reports'), {**REPORT_QUERY, 'period': 'weekly', 'export': 'rainfall'})
        self.assertIn('rainfall-weekly-report-', response['Content-Disposition'])
        self.assertTrue(response.content.decode().startswith('period_start,location_id,location_name,total_rainfall'))


class DashboardViewTest(MonitoringViewTestCase):
    def test_critical_alert(self):
        WaterLevelMeasurement.objects.create(
            location=self.location, recorded_by=self.officer, water_level=12.0, recorded_at=timezone.now(),
        )
        self.login(self.viewer)
        response = self.client.get(reverse('dashboard'))
        self.assertContains(response, 'Critical: Mahaweli Dam')
        self.assertEqual(len(response.context['hourly_levels']), 1)

    @mock.patch('monitoring.reports.get_backend', side_effect=FetchError('down'))
    def test_aggregation_failure(self, get_backend):
        self.login(self.viewer)
        response = self.client.get(reverse('dashboard'))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Failed to load aggregated data')


class ApiTest(MonitoringViewTestCase):
    def test_requires_login(self):
        response = self.client.get(reverse('api_level_status'), {'location': str(self.location.pk), 'level': '14'})
        self.assertEqual(response.status_code, 401)

    def test_level_status(self):
        self.login(self.viewer)
        cases = {'14': 'critical', '15.5': 'low', '18': 'normal', '21': 'high'}
        for level, expected in cases.items():
            with self.subTest(level=level):
                response = self.client.get(reverse('api_level_status'), {'location': str(self.location.pk), 'level': level})
                self.assertEqual(response.json()['status'], expected)

    def test_level_status_without_number(self):
        self.login(self.viewer)
        for params in ({'location': str(self.location.pk), 'level': 'abc'},
                       {'location': 'not-a-uuid', 'level': '14'},
                       {'level': '14'}):
            with self.subTest(params=params):
                self.assertEqual(
                    self.client.get(reverse('api_level_status'), params).json(),
                    {'status': None, 'message': None},
                )

    def test_locations(self):
        self.login(self.viewer)
        data = self.client.get(reverse('api_locations')).json()
        self.assertEqual(data['locations'][0]['name'], 'Mahaweli Dam')
        self.assertEqual(data['locations'][0]['min_level'], 15.0)

    @mock.patch('monitoring.reports.get_backend')
    def test_hourly_report_api(self, get_backend):
        get_backend.return_value = fake_backend()
        self.login(self.viewer)
        response = self.client.get(reverse('api_hourly_report', args=['water-level']), REPORT_QUERY)
        data = response.json()
        self.assertEqual(data['count'], 1)
        self.assertEqual(data['rows'][0]['hour_period'], '2024-01-01T10:00:00+00:00')

        response = self.client.get(reverse('api_hourly_report', args=['temperature']), REPORT_QUERY)
        self.assertEqual(response.status_code, 400)

        get_backend.return_value.get_hourly_water_level_report.side_effect = FetchError('down')
        response = self.client.get(reverse('api_hourly_report', args=['water-level']), REPORT_QUERY)
        self.assertEqual(response.status_code, 502)

    def test_hourly_report_api_rejects_malformed_location(self):
        self.login(self.viewer)
        response = self.client.get(
            reverse('api_hourly_report', args=['water-level']),
            {**REPORT_QUERY, 'location': 'not-a-uuid'},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn('not-a-uuid', response.json()['error'])
