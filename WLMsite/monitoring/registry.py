from django.core.exceptions import ValidationError

from .models import MonitoringLocation


def list_locations():
    """All monitoring locations ordered by name."""
    return MonitoringLocation.objects.order_by('name')


def get_location(location_id):
    if not location_id:
        return None
    try:
        return list_locations().filter(pk=location_id).first()
    except (ValidationError, ValueError):
        # ไม่ใช่ UUID ที่ถูกต้อง
        return None


def location_to_dict(location):
    return {
        'id': str(location.id),
        'name': location.name,
        'location_type': location.location_type,
        'district': location.district,
        'province': location.province,
        'capacity': location.capacity,
        'latitude': float(location.latitude) if location.latitude is not None else None,
        'longitude': float(location.longitude) if location.longitude is not None else None,
        'elevation': location.elevation,
        'min_level': location.min_level,
        'max_level': location.max_level,
    }
