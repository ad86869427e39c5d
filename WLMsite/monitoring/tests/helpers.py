from datetime import datetime, timezone as dt_timezone

from django.contrib.auth import get_user_model

from monitoring.models import MonitoringLocation, Role, UserProfile


def utc(*args):
    return datetime(*args, tzinfo=dt_timezone.utc)


def make_location(name='Mahaweli Dam', min_level=15.0, max_level=20.0, **extra):
    fields = {
        'location_type': 'Dam',
        'district': 'Kandy',
        'province': 'Central',
        'min_level': min_level,
        'max_level': max_level,
    }
    fields.update(extra)
    return MonitoringLocation.objects.create(name=name, **fields)


def make_user(username, role=Role.OFFICER, password='secret123', name=None):
    user = get_user_model().objects.create_user(username=username, password=password)
    UserProfile.objects.update_or_create(
        user=user, defaults={'name': name or username, 'role': role},
    )
    # profile ถูก cache ไว้บน instance ตอน signal สร้าง จึงโหลด user ใหม่
    return get_user_model().objects.get(pk=user.pk)
