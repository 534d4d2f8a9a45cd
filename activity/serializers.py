from rest_framework import serializers

from .models import ActivityLog, SalesLog


class ActivityLogSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.profile.full_name', read_only=True, default=None)

    class Meta:
        model = ActivityLog
        fields = ['id', 'action', 'description', 'user', 'user_name', 'metadata', 'created_at']
        read_only_fields = ['id', 'user', 'created_at']


class SalesLogSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.profile.full_name', read_only=True, default=None)
    order_number = serializers.CharField(source='order.order_number', read_only=True, default=None)

    class Meta:
        model = SalesLog
        fields = [
            'id', 'action', 'description', 'user', 'user_name',
            'order', 'order_number', 'amount', 'metadata', 'created_at'
        ]
        read_only_fields = fields
