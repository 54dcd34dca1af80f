from django.urls import path
from .views import (
    return_reasons, return_settings_public, return_create, my_returns,
    admin_return_list, admin_return_detail, admin_return_stats, admin_return_status, admin_return_settings,
)

urlpatterns = [
    path('returns/', return_create, name='return-create'),
    path('returns/reasons/', return_reasons, name='return-reasons'),
    path('returns/settings/', return_settings_public, name='return-settings'),
    path('returns/my-returns/', my_returns, name='my-returns'),

    path('admin/returns/', admin_return_list, name='admin-return-list'),
    path('admin/returns/stats/', admin_return_stats, name='admin-return-stats'),
    path('admin/returns/settings/', admin_return_settings, name='admin-return-settings'),
    path('admin/returns/<int:pk>/', admin_return_detail, name='admin-return-detail'),
    path('admin/returns/<int:pk>/status/', admin_return_status, name='admin-return-status'),
]
