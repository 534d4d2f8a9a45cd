from rest_framework import generics, filters
from rest_framework.permissions import IsAuthenticated
from django_filters.rest_framework import DjangoFilterBackend

from authentication.permissions import HasPermission, Permissions
from .models import ActivityLog, SalesLog
from .serializers import ActivityLogSerializer, SalesLogSerializer


class ActivityLogListCreateView(generics.ListCreateAPIView):
    """
    get: Activity feed, newest first
    post: Record a client-side action in the activity log
    """
    queryset = ActivityLog.objects.select_related('user__profile').all()
    serializer_class = ActivityLogSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['action', 'user']
    search_fields = ['description', 'action']
    ordering_fields = ['created_at', 'action']
    ordering = ['-created_at', '-id']

    def perform_create(self, serializer):
        serializer.save(user=self.request.user)


class SalesLogListView(generics.ListAPIView):
    """Sales log entries written at POS checkout"""
    queryset = SalesLog.objects.select_related('user__profile', 'order').all()
    serializer_class = SalesLogSerializer
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['action', 'user', 'order']
    ordering_fields = ['created_at', 'amount']
    ordering = ['-created_at', '-id']

    def get_permissions(self):
        return [HasPermission(Permissions.VIEW_SALES)]
