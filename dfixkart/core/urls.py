from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register, logout, user_me,
    change_password, forgot_password, reset_password,
    user_list, user_detail,
    role_list_create, role_detail,
    setting_list_create, setting_detail,
    audit_log_list, audit_log_detail,
    health
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/logout/', logout, name='logout'),
    path('auth/me/', user_me, name='user-me'),
    path('auth/change-password/', change_password, name='change-password'),
    path('auth/forgot-password/', forgot_password, name='forgot-password'),
    path('auth/reset-password/', reset_password, name='reset-password'),

    # Admin user endpoints
    path('admin/users/', user_list, name='admin-user-list'),
    path('admin/users/<int:pk>/', user_detail, name='admin-user-detail'),

    # Role endpoints
    path('admin/roles/', role_list_create, name='role-list-create'),
    path('admin/roles/<int:pk>/', role_detail, name='role-detail'),

    # Setting endpoints
    path('admin/settings/', setting_list_create, name='setting-list-create'),
    path('admin/settings/<int:pk>/', setting_detail, name='setting-detail'),

    # AuditLog endpoints
    path('admin/audit-logs/', audit_log_list, name='audit-log-list'),
    path('admin/audit-logs/<int:pk>/', audit_log_detail, name='audit-log-detail'),

    path('health/', health, name='health'),
]
