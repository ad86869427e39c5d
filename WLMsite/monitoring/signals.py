from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Role, UserProfile


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_user_profile(sender, instance, created, raw=False, **kwargs):
    if not created or raw:
        return
    UserProfile.objects.get_or_create(
        user=instance,
        defaults={
            'name': instance.get_full_name() or instance.get_username(),
            'role': Role.ADMIN if instance.is_superuser else Role.VIEWER,
        },
    )
