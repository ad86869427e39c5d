from .models import Role
from .session_gate import current_identity

WRITER_ROLES = (Role.ADMIN, Role.OFFICER)

# (url name, label, roles ที่เข้าได้; None = ทุก role ที่ login แล้ว)
NAV_ITEMS = [
    ('home', 'Home', None),
    ('dashboard', 'Dashboard', None),
    ('water_level_entry', 'Water Level Entry', WRITER_ROLES),
    ('rainfall_entry', 'Rainfall Entry', WRITER_ROLES),
    ('hourly_reports', 'Hourly Reports', None),
    ('reports', 'Reports', None),
]


def nav_items_for(identity):
    if identity is None:
        return []
    return [
        {'url_name': url_name, 'label': label}
        for url_name, label, roles in NAV_ITEMS
        if roles is None or identity.role in roles
    ]


def navigation(request):
    identity = current_identity(request)
    return {
        'identity': identity,
        'nav_items': nav_items_for(identity),
    }
