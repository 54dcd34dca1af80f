from django.contrib import admin
from .models import ReturnSettings, ReturnRequest


@admin.register(ReturnRequest)
class ReturnRequestAdmin(admin.ModelAdmin):
    list_display = ['id', 'order', 'user', 'reason', 'status', 'processed_by', 'created_at']
    list_filter = ['status', 'reason', 'created_at']
    search_fields = ['order__order_number', 'user__username', 'user__email']
    readonly_fields = ['created_at', 'updated_at', 'processed_at']


@admin.register(ReturnSettings)
class ReturnSettingsAdmin(admin.ModelAdmin):
    list_display = ['is_enabled', 'return_window_days', 'updated_at']
