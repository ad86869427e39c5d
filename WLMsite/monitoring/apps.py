from django.apps import AppConfig

class MonitoringConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'monitoring'
    verbose_name = 'Water Level Monitoring'

    def ready(self):
        # ผูก signal สร้าง UserProfile ให้ user ใหม่
        from . import signals  # noqa: F401
