import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import CustomUser, Profile

logger = logging.getLogger(__name__)


@receiver(post_save, sender=CustomUser)
def create_profile_for_new_user(sender, instance, created, **kwargs):
    """Every new account gets a profile; the name falls back to the email."""
    if not created:
        return
    full_name = instance.get_full_name() or instance.email
    role = Profile.ADMIN if instance.is_superuser else Profile.DEFAULT_ROLE
    Profile.objects.get_or_create(user=instance, defaults={'full_name': full_name, 'role': role})
    logger.info(f"Profile created for {instance.email} with role {role}")
