from datetime import datetime, timedelta
from decimal import Decimal

from django.db.models import Sum, Count, F, Q
from django.db.models.functions import TruncDate
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from activity.models import ActivityLog
from brewpos.utils import brewpos_setting, to_money
from inventory.models import InventoryItem, LowStockAlert, MenuItem
from orders.models import Order, OrderItem, OrderStatus

DEFAULT_REPORT_DAYS = 30


def parse_report_range(start_date=None, end_date=None):
    """Read start/end dates (YYYY-MM-DD); default to the last 30 days ending today"""
    try:
        end = datetime.strptime(end_date, '%Y-%m-%d').date() if end_date else timezone.localdate()
        start = (
            datetime.strptime(start_date, '%Y-%m-%d').date()
            if start_date else end - timedelta(days=DEFAULT_REPORT_DAYS)
        )
    except ValueError:
        raise ValidationError({'date': 'Dates must be in YYYY-MM-DD format.'})
    if start > end:
        raise ValidationError({'date': 'start_date must be on or before end_date.'})
    return start, end


def completed_orders(start_date, end_date):
    return Order.objects.filter(
        status=OrderStatus.COMPLETED,
        created_at__date__gte=start_date,
        created_at__date__lte=end_date,
    )


def get_today_stats(today=None):
    """Get today's key metrics"""
    today = today or timezone.localdate()
    today_orders = Order.objects.filter(created_at__date=today)
    completed = today_orders.filter(status=OrderStatus.COMPLETED)

    return {
        'date': today,
        'today_sales': to_money(completed.aggregate(total=Sum('total_amount'))['total']),
        'today_orders': today_orders.count(),
        'completed_orders': completed.count(),
        'pending_orders': Order.objects.filter(status=OrderStatus.PENDING).count(),
        'low_stock_items': InventoryItem.objects.filter(current_stock__lte=F('min_stock_level')).count(),
        'available_menu_items': MenuItem.objects.filter(is_available=True).count(),
        'open_alerts': LowStockAlert.objects.filter(is_acknowledged=False).count(),
    }


def get_recent_orders(limit=None):
    limit = limit or brewpos_setting('RECENT_LIMIT')
    return Order.objects.select_related('cashier__profile').prefetch_related('items').order_by('-created_at')[:limit]


def get_recent_activities(limit=None):
    limit = limit or brewpos_setting('RECENT_LIMIT')
    return ActivityLog.objects.select_related('user__profile').order_by('-created_at', '-id')[:limit]


def get_sales_history(search=None, limit=None):
    """Latest completed sales plus their totals"""
    limit = limit or brewpos_setting('SALES_HISTORY_LIMIT')
    orders = Order.objects.filter(status=OrderStatus.COMPLETED).select_related('cashier__profile')
    if search:
        orders = orders.filter(Q(order_number__icontains=search) | Q(customer_name__icontains=search))

    orders = list(orders.prefetch_related('items').order_by('-created_at')[:limit])
    totals = {
        'total_sales': to_money(sum((order.total_amount for order in orders), Decimal('0.00'))),
        'total_tax': to_money(sum((order.tax_amount for order in orders), Decimal('0.00'))),
        'total_orders': len(orders),
    }
    return orders, totals


def get_top_selling_items(start_date, end_date, limit=None):
    """Get top selling items in date range, by revenue"""
    limit = limit or brewpos_setting('TOP_ITEMS_LIMIT')
    rows = OrderItem.objects.filter(
        order__status=OrderStatus.COMPLETED,
        order__created_at__date__gte=start_date,
        order__created_at__date__lte=end_date,
    ).values(
        'menu_item__name'
    ).annotate(
        quantity=Sum('quantity'),
        revenue=Sum('total_price')
    ).order_by('-revenue', 'menu_item__name')[:limit]

    return [
        {'name': row['menu_item__name'], 'quantity': row['quantity'], 'revenue': to_money(row['revenue'])}
        for row in rows
    ]


def get_daily_breakdown(start_date, end_date):
    rows = completed_orders(start_date, end_date).annotate(
        day=TruncDate('created_at')
    ).order_by().values('day').annotate(
        total_orders=Count('id'),
        total_sales=Sum('total_amount'),
        total_tax=Sum('tax_amount'),
    ).order_by('day')

    return [
        {
            'date': row['day'],
            'total_orders': row['total_orders'],
            'total_sales': to_money(row['total_sales']),
            'total_tax': to_money(row['total_tax']),
        }
        for row in rows
    ]


def build_sales_report(start_date, end_date):
    """Sales summary over completed orders between two dates, inclusive"""
    summary = completed_orders(start_date, end_date).aggregate(
        total_sales=Sum('total_amount'),
        total_orders=Count('id'),
    )
    total_sales = to_money(summary['total_sales'])
    total_orders = summary['total_orders'] or 0
    average = to_money(total_sales / total_orders) if total_orders else Decimal('0.00')

    return {
        'start_date': start_date,
        'end_date': end_date,
        'total_sales': total_sales,
        'total_orders': total_orders,
        'average_order_value': average,
        'top_items': get_top_selling_items(start_date, end_date),
        'daily_breakdown': get_daily_breakdown(start_date, end_date),
    }
