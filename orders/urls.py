from django.urls import path
from . import views

app_name = 'orders'

urlpatterns = [
    # Checkout
    path('checkout/pos/', views.POSCheckoutView.as_view(), name='checkout-pos'),
    path('checkout/online/', views.OnlineCheckoutView.as_view(), name='checkout-online'),
    path('checkout/kiosk/', views.KioskCheckoutView.as_view(), name='checkout-kiosk'),

    # Orders
    path('', views.OrderListView.as_view(), name='order-list'),
    path('<int:pk>/', views.OrderDetailView.as_view(), name='order-detail'),
    path('<int:pk>/actions/', views.order_action, name='order-action'),
    path('<int:pk>/actions/history/', views.order_action_history, name='order-action-history'),
    path('kitchen/', views.kitchen_display, name='kitchen-display'),
    path('statistics/', views.order_statistics, name='order-statistics'),
    path('transitions/', views.order_transitions, name='order-transitions'),

    # Real-time
    path('feed/', views.order_feed_stream, name='order-feed'),
]
