import logging

from .models import LowStockAlert

logger = logging.getLogger(__name__)


def alert_level_for(stock, min_stock_level):
    """
    Alert level for a stock count, or None when the item is adequately stocked.

    0 is out of stock regardless of the threshold; at or below half the
    minimum is critical; at or below the minimum is low.
    """
    if stock == 0:
        return LowStockAlert.OUT_OF_STOCK
    if stock <= min_stock_level:
        # stock <= min * 0.5 without going through floats
        if stock * 2 <= min_stock_level:
            return LowStockAlert.CRITICAL
        return LowStockAlert.LOW
    return None


def refresh_stock_alert(item):
    """
    Bring the item's open (unacknowledged) alert in line with its current stock.

    The open alert is updated in place, created, or removed; acknowledged
    alerts are history and are never touched.
    """
    level = alert_level_for(item.current_stock, item.min_stock_level)

    if level is None:
        deleted, _ = LowStockAlert.objects.filter(inventory=item, is_acknowledged=False).delete()
        if deleted:
            logger.info(f"Cleared stock alert for {item.item_name} (stock {item.current_stock})")
        return None

    alert, created = LowStockAlert.objects.update_or_create(
        inventory=item,
        is_acknowledged=False,
        defaults={'alert_level': level},
    )
    logger.info(
        f"{'Raised' if created else 'Updated'} {level} alert for {item.item_name} "
        f"(stock {item.current_stock}, minimum {item.min_stock_level})"
    )
    return alert
