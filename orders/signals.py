from django.db import transaction
from django.db.models.signals import pre_save, post_save, post_delete
from django.dispatch import receiver

from activity.services import log_activity
from .models import Order
from .realtime import order_feed


@receiver(pre_save, sender=Order)
def remember_previous_status(sender, instance, **kwargs):
    if instance.pk is None:
        instance._previous_status = None
        return
    instance._previous_status = (
        Order.objects.filter(pk=instance.pk).values_list('status', flat=True).first()
    )


@receiver(post_save, sender=Order)
def log_order_changes(sender, instance, created, **kwargs):
    """Audit order creation and status changes, and announce new orders"""
    if created:
        log_activity(
            'order_created',
            f"Order {instance.order_number} created",
            user=instance.cashier,
            metadata={'order_id': instance.pk, 'total_amount': instance.total_amount},
        )
        transaction.on_commit(lambda: order_feed.publish_new_order(instance))
        return

    previous = getattr(instance, '_previous_status', None)
    if previous is not None and previous != instance.status:
        log_activity(
            'order_status_changed',
            f"Order {instance.order_number} status changed to {instance.status}",
            user=getattr(instance, '_acting_user', None),
            metadata={'order_id': instance.pk, 'old_status': previous, 'new_status': instance.status},
        )


@receiver(post_delete, sender=Order)
def log_order_deleted(sender, instance, **kwargs):
    log_activity(
        'order_deleted',
        f"Order {instance.order_number} deleted",
        user=getattr(instance, '_acting_user', None),
        metadata={'order_id': instance.pk, 'status': instance.status, 'total_amount': instance.total_amount},
    )
