from django.db.models.signals import pre_save, post_save
from django.dispatch import receiver

from .models import InventoryItem
from .alerts import refresh_stock_alert


@receiver(pre_save, sender=InventoryItem)
def remember_previous_stock(sender, instance, **kwargs):
    """Keep the stored stock value so post_save can tell whether it changed"""
    if instance.pk is None:
        instance._previous_stock = None
        return
    instance._previous_stock = (
        InventoryItem.objects.filter(pk=instance.pk).values_list('current_stock', flat=True).first()
    )


@receiver(post_save, sender=InventoryItem)
def refresh_alert_on_stock_change(sender, instance, created, **kwargs):
    """Recompute the low-stock alert only when an existing row's stock actually changed"""
    if created:
        return
    previous = getattr(instance, '_previous_stock', None)
    if previous is None or previous == instance.current_stock:
        return
    refresh_stock_alert(instance)
