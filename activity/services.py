"""
Best-effort audit writers.

Both helpers run inside their own savepoint so a failed insert never breaks
the surrounding transaction. They log the failure and return None.
"""
import logging

from django.db import transaction

from .models import ActivityLog, SalesLog

logger = logging.getLogger(__name__)


def _real_user(user):
    if user is None or not getattr(user, 'is_authenticated', False):
        return None
    return user


def log_activity(action, description, user=None, metadata=None):
    try:
        with transaction.atomic():
            return ActivityLog.objects.create(
                action=action,
                description=description,
                user=_real_user(user),
                metadata=metadata or {},
            )
    except Exception as e:
        logger.warning(f"Could not write activity log '{action}': {e}")
        return None


def log_sale(action, description, order=None, amount=None, user=None, metadata=None):
    try:
        with transaction.atomic():
            return SalesLog.objects.create(
                action=action,
                description=description,
                order=order,
                amount=amount,
                user=_real_user(user),
                metadata=metadata or {},
            )
    except Exception as e:
        logger.warning(f"Could not write sales log '{action}': {e}")
        return None
