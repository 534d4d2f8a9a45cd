from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from authentication.models import TimeStampedModel


class Category(TimeStampedModel):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)

    def __str__(self):
        return str(self.name)

    class Meta:
        db_table = 'categories'
        ordering = ['name']
        verbose_name_plural = "Categories"


class MenuItem(TimeStampedModel):
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    # deleting a category keeps its items, uncategorised
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='items')
    image_url = models.URLField(blank=True)
    is_available = models.BooleanField(default=True)
    preparation_time = models.PositiveIntegerField(default=5, help_text="Minutes")
    size = models.CharField(max_length=50, blank=True)

    def __str__(self):
        return f"{self.name} ({self.size})" if self.size else str(self.name)

    class Meta:
        db_table = 'menu_items'
        ordering = ['name']


class InventoryItem(TimeStampedModel):
    item_name = models.CharField(max_length=255)
    current_stock = models.PositiveIntegerField(default=0)
    min_stock_level = models.PositiveIntegerField(default=10)
    max_stock_level = models.PositiveIntegerField(default=100)
    unit = models.CharField(max_length=50, default='pieces')
    cost_per_unit = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(Decimal('0.00'))]
    )
    supplier = models.CharField(max_length=255, blank=True)
    last_restocked = models.DateTimeField(default=timezone.now, null=True, blank=True)

    def __str__(self):
        return f"{self.item_name}: {self.current_stock} {self.unit}"

    class Meta:
        db_table = 'inventory'
        ordering = ['item_name']

    @property
    def is_low_stock(self):
        return self.current_stock <= self.min_stock_level

    def restock(self, quantity):
        """Add stock and stamp the restock time; alerts are refreshed by the post_save signal"""
        self.current_stock += quantity
        self.last_restocked = timezone.now()
        self.save(update_fields=['current_stock', 'last_restocked', 'updated_at'])

    def set_stock(self, value):
        self.current_stock = value
        self.save(update_fields=['current_stock', 'updated_at'])


class LowStockAlert(TimeStampedModel):
    LOW = 'low'
    CRITICAL = 'critical'
    OUT_OF_STOCK = 'out_of_stock'

    ALERT_LEVEL_CHOICES = [
        (LOW, 'Low'),
        (CRITICAL, 'Critical'),
        (OUT_OF_STOCK, 'Out of stock'),
    ]

    inventory = models.ForeignKey(InventoryItem, on_delete=models.CASCADE, related_name='alerts')
    alert_level = models.CharField(max_length=20, choices=ALERT_LEVEL_CHOICES, default=LOW)
    is_acknowledged = models.BooleanField(default=False)
    acknowledged_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='acknowledged_alerts'
    )
    acknowledged_at = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        state = 'acknowledged' if self.is_acknowledged else 'open'
        return f"{self.inventory.item_name}: {self.alert_level} ({state})"

    class Meta:
        db_table = 'low_stock_alerts'
        ordering = ['-created_at']
        constraints = [
            # at most one open alert per inventory item
            models.UniqueConstraint(
                fields=['inventory'],
                condition=Q(is_acknowledged=False),
                name='unique_open_alert_per_inventory_item',
            ),
        ]

    def acknowledge(self, user):
        self.is_acknowledged = True
        self.acknowledged_by = user
        self.acknowledged_at = timezone.now()
        self.save(update_fields=['is_acknowledged', 'acknowledged_by', 'acknowledged_at', 'updated_at'])
