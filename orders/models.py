from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from brewpos.utils import to_money
from inventory.models import MenuItem


class OrderStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    APPROVED = 'approved', 'Approved'
    PREPARING = 'preparing', 'Preparing'
    READY = 'ready', 'Ready'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'
    VOID = 'void', 'Void'


# Statuses shown on the live order board
ACTIVE_STATUSES = (OrderStatus.PENDING, OrderStatus.APPROVED, OrderStatus.PREPARING, OrderStatus.READY)


class OrderSequence(models.Model):
    """Counter behind order numbers; it only ever moves forward"""
    name = models.CharField(max_length=50, unique=True)
    value = models.PositiveBigIntegerField(default=0)

    class Meta:
        db_table = 'order_sequences'

    def __str__(self):
        return f"{self.name}: {self.value}"


class Order(models.Model):
    ORDER_TYPE_CHOICES = (
        ("takeout", "Takeout"),
        ("dine-in", "Dine In"),
    )
    PAYMENT_METHOD_CHOICES = (
        ("cash", "Cash"),
        ("card", "Card"),
        ("pending", "Pending"),
    )
    SOURCE_CHOICES = (
        ("pos", "Cashier POS"),
        ("online", "Customer online order"),
        ("kiosk", "Customer menu"),
    )

    order_number = models.CharField(max_length=40, unique=True, editable=False)
    customer_name = models.CharField(max_length=255, blank=True)
    customer_phone = models.CharField(max_length=30, blank=True)
    order_type = models.CharField(max_length=20, choices=ORDER_TYPE_CHOICES, default="takeout")
    pickup_time = models.DateTimeField(null=True, blank=True)
    customer_notes = models.TextField(blank=True)

    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default="cash")
    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING, db_index=True)
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default="pos")
    cashier = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders_taken'
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        if not self.order_number:
            from .numbering import generate_order_number
            self.order_number = generate_order_number()
        super().save(*args, **kwargs)

    @property
    def is_active(self):
        return self.status in ACTIVE_STATUSES

    def __str__(self):
        return f"{self.order_number} - {self.customer_name or 'Walk-in'} ({self.status})"

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at', '-id']


class OrderItem(models.Model):
    order = models.ForeignKey(Order, related_name='items', on_delete=models.CASCADE)
    # sold items keep their menu item; it cannot be deleted out from under them
    menu_item = models.ForeignKey(MenuItem, on_delete=models.PROTECT, related_name='order_items')
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_price = models.DecimalField(max_digits=10, decimal_places=2)
    special_instructions = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def save(self, *args, **kwargs):
        self.unit_price = to_money(self.unit_price)
        # line total is fixed when the line is written
        if self._state.adding and self.total_price is None:
            self.total_price = to_money(self.unit_price * self.quantity)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.quantity} x {self.menu_item.name}"

    class Meta:
        db_table = 'order_items'
        ordering = ['id']


class OrderAction(models.Model):
    """Append-only record of a staff intervention on an order"""

    class ActionType(models.TextChoices):
        APPROVE = 'approve', 'Approve'
        PREPARING = 'preparing', 'Start preparing'
        READY = 'ready', 'Mark ready'
        COMPLETE = 'complete', 'Complete'
        CANCEL = 'cancel', 'Cancel'
        REFUND = 'refund', 'Refund'
        DISCOUNT = 'discount', 'Discount'
        VOID = 'void', 'Void'

    order = models.ForeignKey(Order, related_name='actions', on_delete=models.CASCADE)
    action_type = models.CharField(max_length=20, choices=ActionType.choices)
    action_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='order_actions'
    )
    # admin who authorised a void on someone else's behalf
    authorized_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='authorized_order_actions'
    )
    from_status = models.CharField(max_length=20, choices=OrderStatus.choices, blank=True)
    to_status = models.CharField(max_length=20, choices=OrderStatus.choices, blank=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    reason = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.order.order_number}: {self.action_type}"

    class Meta:
        db_table = 'order_actions'
        ordering = ['created_at', 'id']


class OrderDiscount(models.Model):
    DISCOUNT_TYPE_CHOICES = (
        ("percentage", "Percentage"),
        ("fixed", "Fixed amount"),
        ("senior", "Senior citizen"),
        ("promotional", "Promotional"),
    )

    order = models.ForeignKey(Order, related_name='discounts', on_delete=models.CASCADE)
    discount_type = models.CharField(max_length=20, choices=DISCOUNT_TYPE_CHOICES)
    discount_value = models.DecimalField(max_digits=10, decimal_places=2)
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2)
    applied_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='applied_discounts'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.order.order_number}: {self.discount_type} {self.discount_amount}"

    class Meta:
        db_table = 'order_discounts'
        ordering = ['created_at', 'id']
