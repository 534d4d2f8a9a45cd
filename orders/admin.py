from django.contrib import admin

from .models import Order, OrderItem, OrderAction, OrderDiscount, OrderSequence


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['unit_price', 'total_price']


class OrderActionInline(admin.TabularInline):
    model = OrderAction
    extra = 0
    can_delete = False
    readonly_fields = ['action_type', 'action_by', 'authorized_by', 'from_status', 'to_status', 'amount', 'reason', 'created_at']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'customer_name', 'source', 'status', 'total_amount', 'payment_method', 'created_at']
    list_filter = ['status', 'source', 'order_type', 'payment_method']
    search_fields = ['order_number', 'customer_name', 'customer_phone']
    readonly_fields = ['order_number', 'status', 'subtotal', 'tax_amount', 'discount_amount', 'total_amount']
    inlines = [OrderItemInline, OrderActionInline]


@admin.register(OrderDiscount)
class OrderDiscountAdmin(admin.ModelAdmin):
    list_display = ['order', 'discount_type', 'discount_value', 'discount_amount', 'applied_by', 'created_at']
    list_filter = ['discount_type']


@admin.register(OrderSequence)
class OrderSequenceAdmin(admin.ModelAdmin):
    list_display = ['name', 'value']
