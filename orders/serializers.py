import re
from decimal import Decimal

from rest_framework import serializers
from django.contrib.auth import authenticate
from django.db import transaction

from activity.services import log_sale
from authentication.exceptions import AuthorizationRequired
from brewpos.utils import brewpos_setting, to_money
from inventory.models import MenuItem
from .lifecycle import allowed_actions
from .models import Order, OrderItem, OrderAction, OrderDiscount, OrderStatus

PHONE_PATTERN = re.compile(r'^\+?[\d\s\-()]{7,20}$')


class CheckoutItemSerializer(serializers.Serializer):
    menu_item_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)
    special_instructions = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')

    def validate_menu_item_id(self, value):
        try:
            menu_item = MenuItem.objects.get(id=value)
        except MenuItem.DoesNotExist:
            raise serializers.ValidationError("Menu item not found.")
        if not menu_item.is_available:
            raise serializers.ValidationError(f"{menu_item.name} is currently unavailable.")
        return value


class BaseCheckoutSerializer(serializers.ModelSerializer):
    """
    Shared checkout: prices come from the menu, totals are computed here,
    and the order, its lines and its audit rows are written in one
    transaction.
    """
    items = CheckoutItemSerializer(many=True, write_only=True)

    source = None
    tax_rate_setting = None
    initial_status = OrderStatus.PENDING

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'customer_name', 'customer_phone', 'order_type',
            'pickup_time', 'customer_notes', 'payment_method', 'items',
            'subtotal', 'tax_amount', 'discount_amount', 'total_amount', 'status', 'source'
        ]
        read_only_fields = [
            'id', 'order_number', 'subtotal', 'tax_amount', 'discount_amount',
            'total_amount', 'status', 'source'
        ]

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("Your cart is empty.")
        return value

    def get_tax_rate(self):
        return brewpos_setting(self.tax_rate_setting)

    def get_order_defaults(self):
        return {}

    def after_create(self, order, lines):
        pass

    @transaction.atomic
    def create(self, validated_data):
        items_data = validated_data.pop('items')
        menu_items = MenuItem.objects.in_bulk([item['menu_item_id'] for item in items_data])

        lines = []
        subtotal = Decimal('0.00')
        for item_data in items_data:
            menu_item = menu_items[item_data['menu_item_id']]
            unit_price = to_money(menu_item.price)
            line_total = to_money(unit_price * item_data['quantity'])
            subtotal += line_total
            lines.append((menu_item, item_data, unit_price, line_total))

        tax_amount = to_money(subtotal * self.get_tax_rate())

        validated_data.update(self.get_order_defaults())
        order = Order.objects.create(
            source=self.source,
            status=self.initial_status,
            subtotal=to_money(subtotal),
            tax_amount=tax_amount,
            total_amount=to_money(subtotal + tax_amount),
            **validated_data
        )

        for menu_item, item_data, unit_price, line_total in lines:
            OrderItem.objects.create(
                order=order,
                menu_item=menu_item,
                quantity=item_data['quantity'],
                unit_price=unit_price,
                total_price=line_total,
                special_instructions=item_data.get('special_instructions', ''),
            )

        self.after_create(order, lines)
        return order


class POSCheckoutSerializer(BaseCheckoutSerializer):
    """Cashier sale: paid at the counter, so the order is completed on creation"""
    source = 'pos'
    tax_rate_setting = 'POS_TAX_RATE'
    initial_status = OrderStatus.COMPLETED

    payment_method = serializers.ChoiceField(choices=[('cash', 'Cash'), ('card', 'Card')], default='cash')

    class Meta(BaseCheckoutSerializer.Meta):
        pass

    def get_order_defaults(self):
        request = self.context.get('request')
        return {'cashier': request.user if request else None}

    def after_create(self, order, lines):
        log_sale(
            'sale_completed',
            f"Sale completed: {order.order_number}",
            order=order,
            amount=order.total_amount,
            user=order.cashier,
            metadata={
                'items_count': len(lines),
                'payment_method': order.payment_method,
                'customer_name': order.customer_name or None,
            },
        )


class OnlineCheckoutSerializer(BaseCheckoutSerializer):
    """Customer order from the website, paid on pickup"""
    source = 'online'
    tax_rate_setting = 'ONLINE_TAX_RATE'

    customer_name = serializers.CharField(max_length=255)
    customer_phone = serializers.CharField(max_length=30)

    class Meta(BaseCheckoutSerializer.Meta):
        read_only_fields = BaseCheckoutSerializer.Meta.read_only_fields + ['payment_method']

    def validate_customer_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("Please enter your name.")
        return value.strip()

    def validate_customer_phone(self, value):
        value = value.strip()
        if not PHONE_PATTERN.match(value):
            raise serializers.ValidationError("Please enter a valid phone number.")
        return value

    def get_order_defaults(self):
        return {'payment_method': 'pending'}


class KioskCheckoutSerializer(BaseCheckoutSerializer):
    """Customer order from the in-store menu screen"""
    source = 'kiosk'
    tax_rate_setting = 'KIOSK_TAX_RATE'

    class Meta(BaseCheckoutSerializer.Meta):
        read_only_fields = BaseCheckoutSerializer.Meta.read_only_fields + ['payment_method', 'order_type']

    def get_order_defaults(self):
        return {'payment_method': 'cash', 'order_type': 'takeout'}


class OrderItemReadSerializer(serializers.ModelSerializer):
    menu_item_name = serializers.CharField(source='menu_item.name', read_only=True)
    menu_item_size = serializers.CharField(source='menu_item.size', read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'menu_item', 'menu_item_name', 'menu_item_size', 'quantity',
            'unit_price', 'total_price', 'special_instructions', 'created_at'
        ]


class OrderActionSerializer(serializers.ModelSerializer):
    action_by_name = serializers.CharField(source='action_by.profile.full_name', read_only=True, default=None)
    authorized_by_name = serializers.CharField(source='authorized_by.profile.full_name', read_only=True, default=None)

    class Meta:
        model = OrderAction
        fields = [
            'id', 'action_type', 'action_by', 'action_by_name', 'authorized_by', 'authorized_by_name',
            'from_status', 'to_status', 'amount', 'reason', 'notes', 'created_at'
        ]


class OrderDiscountSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderDiscount
        fields = ['id', 'discount_type', 'discount_value', 'discount_amount', 'applied_by', 'created_at']


class OrderListSerializer(serializers.ModelSerializer):
    items_count = serializers.IntegerField(source='items.count', read_only=True)
    cashier_name = serializers.CharField(source='cashier.profile.full_name', read_only=True, default=None)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'customer_name', 'customer_phone', 'order_type', 'pickup_time',
            'subtotal', 'tax_amount', 'discount_amount', 'total_amount', 'payment_method',
            'status', 'source', 'cashier', 'cashier_name', 'items_count', 'created_at', 'updated_at'
        ]


class OrderReadSerializer(OrderListSerializer):
    items = OrderItemReadSerializer(many=True, read_only=True)
    actions = OrderActionSerializer(many=True, read_only=True)
    discounts = OrderDiscountSerializer(many=True, read_only=True)
    allowed_actions = serializers.SerializerMethodField()

    class Meta(OrderListSerializer.Meta):
        fields = OrderListSerializer.Meta.fields + [
            'customer_notes', 'items', 'actions', 'discounts', 'allowed_actions'
        ]

    def get_allowed_actions(self, obj):
        return allowed_actions(obj.status)


class OrderActionRequestSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=OrderAction.ActionType.choices)
    amount = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    discount_type = serializers.ChoiceField(choices=OrderDiscount.DISCOUNT_TYPE_CHOICES, required=False)
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    supervisor_email = serializers.EmailField(required=False)
    supervisor_password = serializers.CharField(required=False, write_only=True, trim_whitespace=False)

    def validate(self, attrs):
        email = attrs.pop('supervisor_email', None)
        password = attrs.pop('supervisor_password', None)
        attrs['supervisor'] = None
        if email or password:
            supervisor = authenticate(self.context.get('request'), username=email, password=password)
            if supervisor is None or not supervisor.is_active:
                raise AuthorizationRequired('Supervisor credentials are invalid.')
            attrs['supervisor'] = supervisor
        return attrs
