from django.contrib import admin
from .models import Referral


@admin.register(Referral)
class ReferralAdmin(admin.ModelAdmin):
    list_display = ['referrer', 'referred', 'code', 'status', 'reward_amount', 'completed_at', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['code', 'referrer__username', 'referred__username']
