from django.urls import path
from . import views

app_name = 'activity'

urlpatterns = [
    path('', views.ActivityLogListCreateView.as_view(), name='activity-list'),
    path('sales/', views.SalesLogListView.as_view(), name='sales-log-list'),
]
