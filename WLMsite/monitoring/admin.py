from django.contrib import admin
from .models import MonitoringLocation, RainfallMeasurement, UserProfile, WaterLevelMeasurement

@admin.register(MonitoringLocation)
class MonitoringLocationAdmin(admin.ModelAdmin):
    list_display = ('name', 'location_type', 'district', 'province', 'min_level', 'max_level', 'updated_at')
    list_filter = ('location_type', 'province')
    search_fields = ('name', 'district', 'province')

@admin.register(WaterLevelMeasurement)
class WaterLevelMeasurementAdmin(admin.ModelAdmin):
    list_display = ('location', 'water_level', 'measurement_type', 'recorded_by', 'recorded_at', 'created_at')
    list_filter = ('location', 'measurement_type', 'recorded_at')
    ordering = ('-recorded_at',)
    readonly_fields = ('created_at', 'submission_token')

@admin.register(RainfallMeasurement)
class RainfallMeasurementAdmin(admin.ModelAdmin):
    list_display = ('location', 'rainfall_amount', 'duration_hours', 'measurement_type', 'recorded_by', 'recorded_at')
    list_filter = ('location', 'duration_hours', 'recorded_at')
    ordering = ('-recorded_at',)
    readonly_fields = ('created_at', 'submission_token')

@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ('name', 'user', 'role', 'department', 'phone')
    list_filter = ('role',)
    search_fields = ('name', 'user__username')
