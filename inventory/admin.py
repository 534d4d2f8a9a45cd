from django.contrib import admin

from .models import Category, MenuItem, InventoryItem, LowStockAlert


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'description', 'created_at']
    search_fields = ['name']


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'price', 'size', 'is_available', 'preparation_time']
    list_filter = ['category', 'is_available']
    search_fields = ['name', 'description']


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ['item_name', 'current_stock', 'min_stock_level', 'max_stock_level', 'unit', 'supplier']
    search_fields = ['item_name', 'supplier']


@admin.register(LowStockAlert)
class LowStockAlertAdmin(admin.ModelAdmin):
    list_display = ['inventory', 'alert_level', 'is_acknowledged', 'acknowledged_by', 'updated_at']
    list_filter = ['alert_level', 'is_acknowledged']
