from rest_framework import serializers

from .models import Category, MenuItem, InventoryItem, LowStockAlert


class CategorySerializer(serializers.ModelSerializer):
    items_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'name', 'description', 'items_count', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_items_count(self, obj):
        return obj.items.count()

    def validate_name(self, value):
        """Category names are unique regardless of case"""
        queryset = Category.objects.filter(name__iexact=value)
        if self.instance:
            queryset = queryset.exclude(id=self.instance.id)
        if queryset.exists():
            raise serializers.ValidationError("A category with this name already exists.")
        return value


class MenuItemSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    category_id = serializers.PrimaryKeyRelatedField(
        source='category', queryset=Category.objects.all(), required=False, allow_null=True
    )

    class Meta:
        model = MenuItem
        fields = [
            'id', 'name', 'description', 'price', 'category_id', 'category_name',
            'image_url', 'is_available', 'preparation_time', 'size',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Price cannot be negative.")
        return value


class InventoryItemSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.BooleanField(read_only=True)
    alert_level = serializers.SerializerMethodField()

    class Meta:
        model = InventoryItem
        fields = [
            'id', 'item_name', 'current_stock', 'min_stock_level', 'max_stock_level',
            'unit', 'cost_per_unit', 'supplier', 'last_restocked',
            'is_low_stock', 'alert_level', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def get_alert_level(self, obj):
        alert = obj.alerts.filter(is_acknowledged=False).first()
        return alert.alert_level if alert else None

    def validate(self, attrs):
        min_level = attrs.get('min_stock_level', getattr(self.instance, 'min_stock_level', 10))
        max_level = attrs.get('max_stock_level', getattr(self.instance, 'max_stock_level', 100))
        if max_level < min_level:
            raise serializers.ValidationError(
                {'max_stock_level': "Maximum stock level cannot be below the minimum stock level."}
            )
        return attrs


class RestockSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)


class StockAdjustmentSerializer(serializers.Serializer):
    current_stock = serializers.IntegerField(min_value=0)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)


class LowStockAlertSerializer(serializers.ModelSerializer):
    item_name = serializers.CharField(source='inventory.item_name', read_only=True)
    current_stock = serializers.IntegerField(source='inventory.current_stock', read_only=True)
    min_stock_level = serializers.IntegerField(source='inventory.min_stock_level', read_only=True)
    unit = serializers.CharField(source='inventory.unit', read_only=True)
    acknowledged_by_name = serializers.CharField(
        source='acknowledged_by.profile.full_name', read_only=True, default=None
    )

    class Meta:
        model = LowStockAlert
        fields = [
            'id', 'inventory', 'item_name', 'current_stock', 'min_stock_level', 'unit',
            'alert_level', 'is_acknowledged', 'acknowledged_by', 'acknowledged_by_name',
            'acknowledged_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields
