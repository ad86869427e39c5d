import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='MonitoringLocation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255, unique=True)),
                ('location_type', models.CharField(max_length=100)),
                ('district', models.CharField(max_length=255)),
                ('province', models.CharField(max_length=255)),
                ('capacity', models.FloatField(blank=True, null=True)),
                ('latitude', models.DecimalField(blank=True, decimal_places=6, max_digits=10, null=True)),
                ('longitude', models.DecimalField(blank=True, decimal_places=6, max_digits=10, null=True)),
                ('elevation', models.FloatField(blank=True, null=True)),
                ('min_level', models.FloatField(blank=True, null=True)),
                ('max_level', models.FloatField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'monitoring_locations',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='WaterLevelMeasurement',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('water_level', models.FloatField()),
                ('measurement_type', models.CharField(choices=[('Manual', 'Manual Reading'), ('Automatic', 'Automatic Sensor'), ('Calibrated', 'Calibrated Reading'), ('Digital', 'Digital Sensor'), ('Ultrasonic', 'Ultrasonic Gauge'), ('Pressure', 'Pressure Transducer')], default='Manual', max_length=50)),
                ('notes', models.TextField(blank=True, null=True)),
                ('recorded_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('submission_token', models.UUIDField(blank=True, editable=False, null=True, unique=True)),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='water_level_measurements', to='monitoring.monitoringlocation')),
                ('recorded_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='water_level_measurements', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'water_level_measurements',
                'ordering': ['-recorded_at'],
                'indexes': [models.Index(fields=['location', 'recorded_at'], name='idx_wl_location_time')],
            },
        ),
        migrations.CreateModel(
            name='RainfallMeasurement',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('rainfall_amount', models.FloatField()),
                ('duration_hours', models.IntegerField(choices=[(1, '1 hour'), (3, '3 hours'), (6, '6 hours'), (12, '12 hours'), (24, '24 hours')], default=1)),
                ('measurement_type', models.CharField(choices=[('Manual', 'Manual Reading'), ('Automatic', 'Automatic Sensor'), ('Calibrated', 'Calibrated Reading'), ('Digital', 'Digital Sensor'), ('Ultrasonic', 'Ultrasonic Gauge'), ('Pressure', 'Pressure Transducer')], default='Manual', max_length=50)),
                ('notes', models.TextField(blank=True, null=True)),
                ('recorded_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('submission_token', models.UUIDField(blank=True, editable=False, null=True, unique=True)),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='rainfall_measurements', to='monitoring.monitoringlocation')),
                ('recorded_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='rainfall_measurements', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'rainfall_measurements',
                'ordering': ['-recorded_at'],
                'indexes': [models.Index(fields=['location', 'recorded_at'], name='idx_rain_location_time')],
            },
        ),
        migrations.CreateModel(
            name='UserProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('role', models.CharField(choices=[('Admin', 'Admin'), ('Officer', 'Officer'), ('Viewer', 'Viewer')], default='Viewer', max_length=20)),
                ('department', models.CharField(blank=True, max_length=255, null=True)),
                ('phone', models.CharField(blank=True, max_length=50, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'user_profiles',
            },
        ),
    ]
