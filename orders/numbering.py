from django.db import transaction
from django.db.models import F
from django.utils import timezone

from brewpos.utils import brewpos_setting
from .models import OrderSequence

SEQUENCE_NAME = 'order_number'


def next_sequence_value(name=SEQUENCE_NAME):
    """Atomically advance a named counter and return its new value"""
    with transaction.atomic():
        # the order_number row is seeded by the initial migration; get_or_create
        # only covers a database whose counters were flushed
        sequence, _ = OrderSequence.objects.select_for_update().get_or_create(name=name)
        OrderSequence.objects.filter(pk=sequence.pk).update(value=F('value') + 1)
        sequence.refresh_from_db(fields=['value'])
        return sequence.value


def generate_order_number(on_date=None):
    """
    ORD-YYYYMMDD-NNNN, where NNNN is the global counter padded to at least
    four digits. The counter is never reset, so numbers stay unique and
    increase within a day.

    Past 9999 the suffix grows to five digits and no longer sorts as text.
    Order listings sort by created_at, never by order_number.
    """
    on_date = on_date or timezone.localdate()
    prefix = brewpos_setting('ORDER_NUMBER_PREFIX')
    return f"{prefix}-{on_date:%Y%m%d}-{next_sequence_value():04d}"
