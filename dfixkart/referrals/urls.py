from django.urls import path
from .views import (
    my_referral_code, my_referral_stats, apply_referral_code,
    admin_referral_list, admin_referral_stats, admin_referral_detail, admin_referral_status,
)

urlpatterns = [
    path('referrals/my-code/', my_referral_code, name='referral-my-code'),
    path('referrals/stats/', my_referral_stats, name='referral-stats'),
    path('referrals/apply/', apply_referral_code, name='referral-apply'),

    path('admin/referrals/', admin_referral_list, name='admin-referral-list'),
    path('admin/referrals/stats/', admin_referral_stats, name='admin-referral-stats'),
    path('admin/referrals/<int:pk>/', admin_referral_detail, name='admin-referral-detail'),
    path('admin/referrals/<int:pk>/status/', admin_referral_status, name='admin-referral-status'),
]
