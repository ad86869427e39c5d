import uuid
from datetime import timedelta

from django import forms
from django.utils import timezone

from .models import (
    MeasurementType,
    MonitoringLocation,
    RainfallDuration,
    RainfallMeasurement,
    WaterLevelMeasurement,
)
from .registry import list_locations
from .reports import SummaryPeriod


class LocationChoiceField(forms.ModelChoiceField):
    def label_from_instance(self, obj):
        return f"{obj.name} ({obj.location_type})"


class MeasurementForm(forms.ModelForm):
    """Fields shared by the water level and rainfall entry forms."""

    location = LocationChoiceField(
        queryset=MonitoringLocation.objects.none(),
        empty_label='Select a monitoring location',
    )
    measurement_type = forms.ChoiceField(
        choices=MeasurementType.choices, initial=MeasurementType.MANUAL,
    )
    recorded_at = forms.DateTimeField(
        required=False,
        widget=forms.DateTimeInput(attrs={'type': 'datetime-local'}, format='%Y-%m-%dT%H:%M'),
        input_formats=['%Y-%m-%dT%H:%M', '%Y-%m-%dT%H:%M:%S', '%Y-%m-%d %H:%M', '%Y-%m-%d %H:%M:%S'],
        help_text='Leave empty to use the submission time.',
    )
    notes = forms.CharField(
        required=False,
        widget=forms.Textarea(attrs={'rows': 3, 'placeholder': 'Add any relevant notes about this measurement...'}),
    )
    submission_token = forms.UUIDField(widget=forms.HiddenInput)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['location'].queryset = list_locations()
        if not self.is_bound:
            self.initial.setdefault('submission_token', uuid.uuid4())

    def clean_recorded_at(self):
        recorded_at = self.cleaned_data.get('recorded_at')
        if recorded_at and recorded_at > timezone.now() + timedelta(minutes=5):
            raise forms.ValidationError('Measurement time cannot be in the future.')
        return recorded_at

    def clean_notes(self):
        return self.cleaned_data.get('notes') or None


class WaterLevelForm(MeasurementForm):
    water_level = forms.FloatField(
        label='Water Level (meters)',
        widget=forms.NumberInput(attrs={'step': '0.001', 'placeholder': 'Enter water level in meters'}),
    )

    class Meta:
        model = WaterLevelMeasurement
        fields = ['location', 'water_level', 'measurement_type', 'notes']


class RainfallForm(MeasurementForm):
    rainfall_amount = forms.FloatField(
        label='Rainfall Amount (mm)',
        min_value=0,
        widget=forms.NumberInput(attrs={'step': '0.1', 'min': '0', 'placeholder': 'Enter rainfall in millimeters'}),
    )
    duration_hours = forms.TypedChoiceField(
        label='Duration',
        choices=RainfallDuration.choices,
        coerce=int,
        initial=RainfallDuration.ONE_HOUR,
    )

    class Meta:
        model = RainfallMeasurement
        fields = ['location', 'rainfall_amount', 'duration_hours', 'measurement_type', 'notes']


class HourlyReportForm(forms.Form):
    start_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))
    end_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))
    location = forms.ModelChoiceField(
        queryset=MonitoringLocation.objects.none(),
        required=False,
        empty_label='All Locations',
    )

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['location'].queryset = list_locations()

    def clean(self):
        cleaned = super().clean()
        start, end = cleaned.get('start_date'), cleaned.get('end_date')
        if start and end and start > end:
            raise forms.ValidationError('Start date must be on or before the end date.')
        return cleaned

    def location_filter(self):
        location = self.cleaned_data.get('location')
        return str(location.pk) if location else None


class PeriodReportForm(HourlyReportForm):
    period = forms.ChoiceField(
        choices=SummaryPeriod.choices,
        initial=SummaryPeriod.DAILY,
    )
