import pandas as pd
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from monitoring.models import MonitoringLocation, RainfallMeasurement, WaterLevelMeasurement
from monitoring.reports import ReportKind

# คอลัมน์ที่ต้องมีในไฟล์ CSV แยกตามชนิดข้อมูล
REQUIRED_COLUMNS = {
    ReportKind.WATER_LEVEL: ['location', 'recorded_at', 'water_level'],
    ReportKind.RAINFALL: ['location', 'recorded_at', 'rainfall_amount'],
}


class Command(BaseCommand):
    help = 'Imports water level or rainfall readings from a CSV file'

    def add_arguments(self, parser):
        parser.add_argument('path', type=str, help='CSV file (location, recorded_at, value columns)')
        parser.add_argument('--kind', choices=[k.value for k in ReportKind], default=ReportKind.WATER_LEVEL.value)
        parser.add_argument('--user', type=str, required=True, help='Username recorded as the author')

    def handle(self, *args, **options):
        kind = ReportKind(options['kind'])
        User = get_user_model()
        try:
            user = User.objects.get(username=options['user'])
        except User.DoesNotExist:
            raise CommandError(f"Unknown user: {options['user']}")

        try:
            df = pd.read_csv(options['path'])
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise CommandError(f"Cannot read {options['path']}: {e}")

        missing = [col for col in REQUIRED_COLUMNS[kind] if col not in df.columns]
        if missing:
            raise CommandError(f"Missing columns: {', '.join(missing)}")

        value_field = REQUIRED_COLUMNS[kind][2]
        # แปลงทีละค่า เพราะไฟล์อาจมีทั้งเวลาแบบมี timezone และไม่มี
        df['recorded_at'] = df['recorded_at'].map(lambda value: pd.to_datetime(value, errors='coerce'))
        df[value_field] = pd.to_numeric(df[value_field], errors='coerce')
        before = len(df)
        df = df.dropna(subset=REQUIRED_COLUMNS[kind])
        if len(df) < before:
            self.stdout.write(self.style.WARNING(f"Skipped {before - len(df)} rows with missing or invalid values"))

        # รับได้ทั้งชื่อสถานีและ id
        locations = {}
        for location in MonitoringLocation.objects.all():
            locations[location.name] = location
            locations[str(location.pk)] = location

        unknown = sorted(set(df['location'].astype(str)) - set(locations))
        if unknown:
            raise CommandError(f"Unknown locations: {', '.join(unknown)}")

        tz = timezone.get_current_timezone()
        objects = []
        for row in df.to_dict('records'):
            recorded_at = row['recorded_at'].to_pydatetime()
            if timezone.is_naive(recorded_at):
                recorded_at = timezone.make_aware(recorded_at, timezone=tz)
            fields = {
                'location': locations[str(row['location'])],
                'recorded_by': user,
                'recorded_at': recorded_at,
                value_field: float(row[value_field]),
            }
            if kind == ReportKind.WATER_LEVEL:
                objects.append(WaterLevelMeasurement(**fields))
            else:
                if 'duration_hours' in row and not pd.isna(row['duration_hours']):
                    fields['duration_hours'] = int(row['duration_hours'])
                objects.append(RainfallMeasurement(**fields))

        with transaction.atomic():
            model = WaterLevelMeasurement if kind == ReportKind.WATER_LEVEL else RainfallMeasurement
            model.objects.bulk_create(objects)

        self.stdout.write(self.style.SUCCESS(f'Successfully imported {len(objects)} {kind.label.lower()} records'))
