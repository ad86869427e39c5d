import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone


class Role(models.TextChoices):
    ADMIN = 'Admin', 'Admin'
    OFFICER = 'Officer', 'Officer'
    VIEWER = 'Viewer', 'Viewer'


class MeasurementType(models.TextChoices):
    MANUAL = 'Manual', 'Manual Reading'
    AUTOMATIC = 'Automatic', 'Automatic Sensor'
    CALIBRATED = 'Calibrated', 'Calibrated Reading'
    DIGITAL = 'Digital', 'Digital Sensor'
    ULTRASONIC = 'Ultrasonic', 'Ultrasonic Gauge'
    PRESSURE = 'Pressure', 'Pressure Transducer'


class RainfallDuration(models.IntegerChoices):
    ONE_HOUR = 1, '1 hour'
    THREE_HOURS = 3, '3 hours'
    SIX_HOURS = 6, '6 hours'
    TWELVE_HOURS = 12, '12 hours'
    TWENTY_FOUR_HOURS = 24, '24 hours'


class MonitoringLocation(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, unique=True)
    location_type = models.CharField(max_length=100)
    district = models.CharField(max_length=255)
    province = models.CharField(max_length=255)
    capacity = models.FloatField(blank=True, null=True)
    latitude = models.DecimalField(max_digits=10, decimal_places=6, blank=True, null=True)
    longitude = models.DecimalField(max_digits=10, decimal_places=6, blank=True, null=True)
    elevation = models.FloatField(blank=True, null=True)
    # เกณฑ์ระดับน้ำ (เมตร) ใช้ประเมินสถานะ critical/low/normal/high
    min_level = models.FloatField(blank=True, null=True)
    max_level = models.FloatField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'monitoring_locations'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.location_type})"

    @property
    def thresholds(self):
        if self.min_level is None or self.max_level is None:
            return None
        return {'min': self.min_level, 'max': self.max_level}


class WaterLevelMeasurement(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    location = models.ForeignKey(
        MonitoringLocation, models.PROTECT,
        related_name='water_level_measurements',
    )
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, models.PROTECT,
        related_name='water_level_measurements',
    )
    water_level = models.FloatField()
    measurement_type = models.CharField(
        max_length=50, choices=MeasurementType.choices, default=MeasurementType.MANUAL,
    )
    notes = models.TextField(blank=True, null=True)
    recorded_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)
    submission_token = models.UUIDField(unique=True, blank=True, null=True, editable=False)

    class Meta:
        db_table = 'water_level_measurements'
        ordering = ['-recorded_at']
        indexes = [
            models.Index(fields=['location', 'recorded_at'], name='idx_wl_location_time'),
        ]

    def __str__(self):
        return f"{self.location.name} - {self.water_level}m"


class RainfallMeasurement(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    location = models.ForeignKey(
        MonitoringLocation, models.PROTECT,
        related_name='rainfall_measurements',
    )
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, models.PROTECT,
        related_name='rainfall_measurements',
    )
    rainfall_amount = models.FloatField()
    duration_hours = models.IntegerField(
        choices=RainfallDuration.choices, default=RainfallDuration.ONE_HOUR,
    )
    measurement_type = models.CharField(
        max_length=50, choices=MeasurementType.choices, default=MeasurementType.MANUAL,
    )
    notes = models.TextField(blank=True, null=True)
    recorded_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)
    submission_token = models.UUIDField(unique=True, blank=True, null=True, editable=False)

    class Meta:
        db_table = 'rainfall_measurements'
        ordering = ['-recorded_at']
        indexes = [
            models.Index(fields=['location', 'recorded_at'], name='idx_rain_location_time'),
        ]

    def __str__(self):
        return f"{self.location.name} - {self.rainfall_amount}mm/{self.duration_hours}h"


class UserProfile(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, models.CASCADE, related_name='profile',
    )
    name = models.CharField(max_length=255)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.VIEWER)
    department = models.CharField(max_length=255, blank=True, null=True)
    phone = models.CharField(max_length=50, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'user_profiles'

    def __str__(self):
        return f"{self.name} ({self.role})"
