import random
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from monitoring.models import (
    MonitoringLocation,
    RainfallMeasurement,
    Role,
    UserProfile,
    WaterLevelMeasurement,
)

DEMO_LOCATIONS = [
    {
        'name': 'Mahaweli Dam', 'location_type': 'Dam', 'district': 'Kandy', 'province': 'Central',
        'capacity': 475000000, 'latitude': '7.270000', 'longitude': '80.733000', 'elevation': 450,
        'min_level': 15.0, 'max_level': 20.0,
    },
    {
        'name': 'Parakrama Canal', 'location_type': 'Canal', 'district': 'Polonnaruwa',
        'province': 'North Central', 'capacity': None, 'latitude': '7.916700', 'longitude': '81.000000',
        'elevation': 60, 'min_level': 10.0, 'max_level': 15.0,
    },
    {
        'name': 'Kala Wewa', 'location_type': 'Reservoir', 'district': 'Anuradhapura',
        'province': 'North Central', 'capacity': 123000000, 'latitude': '8.016700', 'longitude': '80.533300',
        'elevation': 95, 'min_level': 8.0, 'max_level': 12.0,
    },
    {
        'name': 'Victoria Reservoir', 'location_type': 'Reservoir', 'district': 'Kandy', 'province': 'Central',
        'capacity': 721000000, 'latitude': '7.233300', 'longitude': '80.783300', 'elevation': 438,
        'min_level': 12.0, 'max_level': 16.0,
    },
]

# (username, password, ชื่อที่แสดง, role, หน่วยงาน)
DEMO_USERS = [
    ('admin@irrigation.gov', 'admin123', 'Dr. John Smith', Role.ADMIN, 'Irrigation Department'),
    ('officer@irrigation.gov', 'officer123', 'Sarah Johnson', Role.OFFICER, 'Field Operations'),
    ('viewer@irrigation.gov', 'viewer123', 'Mike Wilson', Role.VIEWER, 'Planning Division'),
]


class Command(BaseCommand):
    help = 'Creates demo monitoring locations, one account per role and optional sample readings'

    def add_arguments(self, parser):
        parser.add_argument('--with-readings', action='store_true', help='Also generate sample readings')
        parser.add_argument('--days', type=int, default=7, help='Days of sample readings (default 7)')

    @transaction.atomic
    def handle(self, *args, **options):
        locations = []
        for fields in DEMO_LOCATIONS:
            defaults = dict(fields)
            name = defaults.pop('name')
            location, created = MonitoringLocation.objects.update_or_create(name=name, defaults=defaults)
            locations.append(location)
            if created:
                self.stdout.write(f"Created location: {name}")

        User = get_user_model()
        users = []
        for username, password, name, role, department in DEMO_USERS:
            user, created = User.objects.get_or_create(username=username, defaults={'email': username})
            if created:
                user.set_password(password)
                user.save()
                self.stdout.write(f"Created user: {username} ({role})")
            UserProfile.objects.update_or_create(
                user=user,
                defaults={'name': name, 'role': role, 'department': department},
            )
            users.append((user, role))

        if options['with_readings']:
            recorder = next(user for user, role in users if role == Role.OFFICER)
            count = self._generate_readings(locations, recorder, options['days'])
            self.stdout.write(f"Generated {count} sample readings")

        self.stdout.write(self.style.SUCCESS('Demo data ready'))

    def _generate_readings(self, locations, recorder, days):
        now = timezone.now().replace(minute=0, second=0, microsecond=0)
        rng = random.Random(42)
        water, rain = [], []
        for location in locations:
            base = (location.min_level + location.max_level) / 2
            for hours_ago in range(days * 24):
                recorded_at = now - timedelta(hours=hours_ago)
                water.append(WaterLevelMeasurement(
                    location=location, recorded_by=recorder,
                    water_level=round(base + rng.uniform(-2.5, 2.5), 3),
                    recorded_at=recorded_at,
                ))
                if hours_ago % 3 == 0:
                    rain.append(RainfallMeasurement(
                        location=location, recorded_by=recorder,
                        rainfall_amount=round(max(0.0, rng.gauss(2.0, 4.0)), 1),
                        duration_hours=3,
                        recorded_at=recorded_at,
                    ))
        WaterLevelMeasurement.objects.bulk_create(water)
        RainfallMeasurement.objects.bulk_create(rain)
        return len(water) + len(rain)
