from rest_framework import generics, filters
from rest_framework.exceptions import ValidationError
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.shortcuts import get_object_or_404
from django.db.models import F
from django_filters.rest_framework import DjangoFilterBackend

from activity.services import log_activity
from authentication.permissions import HasPermission, Permissions, require_permission
from .models import Category, MenuItem, InventoryItem, LowStockAlert
from .serializers import (
    CategorySerializer, MenuItemSerializer, InventoryItemSerializer,
    RestockSerializer, StockAdjustmentSerializer, LowStockAlertSerializer
)


class ActivityLogMixin:
    """Write an activity log entry after each create, update and delete"""
    activity_entity = None
    activity_label = None

    def activity_name(self, instance):
        return str(instance)

    def activity_metadata(self, instance):
        return {f'{self.activity_entity}_id': instance.pk}

    def perform_create(self, serializer):
        instance = serializer.save()
        log_activity(
            f'{self.activity_entity}_added',
            f'New {self.activity_label} added: {self.activity_name(instance)}',
            user=self.request.user,
            metadata=self.activity_metadata(instance),
        )

    def perform_update(self, serializer):
        instance = serializer.save()
        log_activity(
            f'{self.activity_entity}_updated',
            f'{self.activity_label.capitalize()} updated: {self.activity_name(instance)}',
            user=self.request.user,
            metadata=self.activity_metadata(instance),
        )

    def perform_destroy(self, instance):
        name = self.activity_name(instance)
        metadata = self.activity_metadata(instance)
        instance.delete()
        log_activity(
            f'{self.activity_entity}_deleted',
            f'{self.activity_label.capitalize()} deleted: {name}',
            user=self.request.user,
            metadata=metadata,
        )


class MenuItemActivityMixin(ActivityLogMixin):
    activity_entity = 'menu_item'
    activity_label = 'menu item'

    def activity_metadata(self, instance):
        return {'menu_item_id': instance.pk, 'price': instance.price}


class InventoryActivityMixin(ActivityLogMixin):
    activity_entity = 'inventory'
    activity_label = 'inventory item'

    def activity_name(self, instance):
        return instance.item_name

    def activity_metadata(self, instance):
        return {'inventory_id': instance.pk, 'current_stock': instance.current_stock}


# Category Views
class CategoryListCreateView(generics.ListCreateAPIView):
    """
    get: List categories (public)
    post: Create a category (menu managers only)
    """
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name']
    ordering_fields = ['name', 'created_at']
    ordering = ['name']

    def get_permissions(self):
        if self.request.method == 'POST':
            return [HasPermission(Permissions.MANAGE_MENU)]
        return [AllowAny()]


class CategoryRetrieveUpdateDestroyView(generics.RetrieveUpdateDestroyAPIView):
    """
    get: Category details (public)
    put/patch/delete: menu managers only; items of a deleted category become uncategorised
    """
    queryset = Category.objects.all()
    serializer_class = CategorySerializer

    def get_permissions(self):
        if self.request.method in ['PUT', 'PATCH', 'DELETE']:
            return [HasPermission(Permissions.MANAGE_MENU)]
        return [AllowAny()]


# Menu Views
class MenuItemListCreateView(MenuItemActivityMixin, generics.ListCreateAPIView):
    """
    get: List menu items; customers only see available items
    post: Create a menu item (menu managers only)
    """
    queryset = MenuItem.objects.select_related('category').all()
    serializer_class = MenuItemSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['category', 'is_available', 'size']
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'price', 'created_at']
    ordering = ['name']

    def get_permissions(self):
        if self.request.method == 'POST':
            return [HasPermission(Permissions.MANAGE_MENU)]
        return [AllowAny()]

    def get_queryset(self):
        queryset = super().get_queryset()
        if not self.request.user.is_authenticated:
            queryset = queryset.filter(is_available=True)
        return queryset


class MenuItemRetrieveUpdateDestroyView(MenuItemActivityMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    get: Menu item details (public)
    put/patch: Update a menu item (menu managers only)
    delete: Delete a menu item; refused once it appears on an order
    """
    queryset = MenuItem.objects.select_related('category').all()
    serializer_class = MenuItemSerializer

    def get_permissions(self):
        if self.request.method in ['PUT', 'PATCH', 'DELETE']:
            return [HasPermission(Permissions.MANAGE_MENU)]
        return [AllowAny()]

    def get_queryset(self):
        queryset = super().get_queryset()
        if not self.request.user.is_authenticated:
            queryset = queryset.filter(is_available=True)
        return queryset


# Inventory Views
class InventoryItemListCreateView(InventoryActivityMixin, generics.ListCreateAPIView):
    """
    get: List inventory items
    post: Add an inventory item (inventory managers only)
    """
    queryset = InventoryItem.objects.all()
    serializer_class = InventoryItemSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['unit', 'supplier']
    search_fields = ['item_name', 'supplier']
    ordering_fields = ['item_name', 'current_stock', 'last_restocked', 'created_at']
    ordering = ['item_name']

    def get_permissions(self):
        if self.request.method == 'POST':
            return [HasPermission(Permissions.MANAGE_INVENTORY)]
        return [IsAuthenticated()]


class InventoryItemRetrieveUpdateDestroyView(InventoryActivityMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    get: Inventory item details
    put/patch/delete: inventory managers only; stock changes refresh the item's alert
    """
    queryset = InventoryItem.objects.all()
    serializer_class = InventoryItemSerializer

    def get_permissions(self):
        if self.request.method in ['PUT', 'PATCH', 'DELETE']:
            return [HasPermission(Permissions.MANAGE_INVENTORY)]
        return [IsAuthenticated()]

    def perform_update(self, serializer):
        old_stock = serializer.instance.current_stock
        instance = serializer.save()
        metadata = self.activity_metadata(instance)
        if old_stock != instance.current_stock:
            metadata.update({'old_stock': old_stock, 'new_stock': instance.current_stock})
        log_activity(
            'inventory_updated',
            f'Inventory item updated: {instance.item_name}',
            user=self.request.user,
            metadata=metadata,
        )


@api_view(['POST'])
@permission_classes([require_permission(Permissions.MANAGE_INVENTORY)])
def restock_inventory_item(request, pk):
    """Add delivered stock to an item"""
    item = get_object_or_404(InventoryItem, pk=pk)
    serializer = RestockSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    old_stock = item.current_stock
    item.restock(serializer.validated_data['quantity'])
    log_activity(
        'inventory_restocked',
        f'Restocked {item.item_name}: {old_stock} -> {item.current_stock} {item.unit}',
        user=request.user,
        metadata={'inventory_id': item.pk, 'old_stock': old_stock, 'new_stock': item.current_stock},
    )
    return Response(InventoryItemSerializer(item).data)


@api_view(['POST'])
@permission_classes([require_permission(Permissions.MANAGE_INVENTORY)])
def adjust_inventory_stock(request, pk):
    """Set an item's stock to a counted value"""
    item = get_object_or_404(InventoryItem, pk=pk)
    serializer = StockAdjustmentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    old_stock = item.current_stock
    item.set_stock(serializer.validated_data['current_stock'])
    log_activity(
        'inventory_adjusted',
        f'Stock adjusted for {item.item_name}: {old_stock} -> {item.current_stock} {item.unit}',
        user=request.user,
        metadata={
            'inventory_id': item.pk,
            'old_stock': old_stock,
            'new_stock': item.current_stock,
            'reason': serializer.validated_data.get('reason', ''),
        },
    )
    return Response(InventoryItemSerializer(item).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def low_stock_items(request):
    """Items at or below their minimum stock level"""
    items = InventoryItem.objects.filter(current_stock__lte=F('min_stock_level')).order_by('current_stock')
    return Response(InventoryItemSerializer(items, many=True).data)


# Alert Views
class LowStockAlertListView(generics.ListAPIView):
    """Low-stock alerts, open ones first"""
    queryset = LowStockAlert.objects.select_related('inventory', 'acknowledged_by__profile').all()
    serializer_class = LowStockAlertSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['is_acknowledged', 'alert_level', 'inventory']
    ordering_fields = ['created_at', 'updated_at', 'alert_level']
    ordering = ['is_acknowledged', '-updated_at']


@api_view(['POST'])
@permission_classes([require_permission(Permissions.MANAGE_INVENTORY)])
def acknowledge_alert(request, pk):
    """Mark an alert as seen; the row is kept as history"""
    alert = get_object_or_404(LowStockAlert.objects.select_related('inventory'), pk=pk)
    if alert.is_acknowledged:
        raise ValidationError('This alert has already been acknowledged.')
    alert.acknowledge(request.user)
    log_activity(
        'alert_acknowledged',
        f'{alert.get_alert_level_display()} stock alert acknowledged for {alert.inventory.item_name}',
        user=request.user,
        metadata={'alert_id': alert.pk, 'inventory_id': alert.inventory_id, 'alert_level': alert.alert_level},
    )
    return Response(LowStockAlertSerializer(alert).data)
