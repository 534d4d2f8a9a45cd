from django.urls import path
from . import views

app_name = 'inventory'

urlpatterns = [
    # Category URLs
    path('categories/', views.CategoryListCreateView.as_view(), name='category-list-create'),
    path('categories/<int:pk>/', views.CategoryRetrieveUpdateDestroyView.as_view(), name='category-detail'),

    # Menu URLs
    path('menu/', views.MenuItemListCreateView.as_view(), name='menu-list-create'),
    path('menu/<int:pk>/', views.MenuItemRetrieveUpdateDestroyView.as_view(), name='menu-detail'),

    # Stock URLs
    path('items/', views.InventoryItemListCreateView.as_view(), name='item-list-create'),
    path('items/low-stock/', views.low_stock_items, name='item-low-stock'),
    path('items/<int:pk>/', views.InventoryItemRetrieveUpdateDestroyView.as_view(), name='item-detail'),
    path('items/<int:pk>/restock/', views.restock_inventory_item, name='item-restock'),
    path('items/<int:pk>/adjust/', views.adjust_inventory_stock, name='item-adjust'),

    # Alerts
    path('alerts/', views.LowStockAlertListView.as_view(), name='alert-list'),
    path('alerts/<int:pk>/acknowledge/', views.acknowledge_alert, name='alert-acknowledge'),
]
