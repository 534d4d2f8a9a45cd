from django.contrib import admin

from .models import ActivityLog, SalesLog


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ['action', 'description', 'user', 'created_at']
    list_filter = ['action']
    search_fields = ['description']
    readonly_fields = ['action', 'description', 'user', 'metadata', 'created_at']


@admin.register(SalesLog)
class SalesLogAdmin(admin.ModelAdmin):
    list_display = ['action', 'order', 'amount', 'user', 'created_at']
    list_filter = ['action']
    readonly_fields = ['action', 'description', 'user', 'order', 'amount', 'metadata', 'created_at']
