from django.urls import path
from .views import (
    order_checkout, order_list, order_detail, order_cancel,
    admin_order_list, admin_order_detail, admin_order_stats, admin_order_status,
    payment_settings, shipping_settings,
)

urlpatterns = [
    path('orders/', order_list, name='order-list'),
    path('orders/checkout/', order_checkout, name='order-checkout'),
    path('orders/<str:order_number>/', order_detail, name='order-detail'),
    path('orders/<str:order_number>/cancel/', order_cancel, name='order-cancel'),

    path('admin/orders/', admin_order_list, name='admin-order-list'),
    path('admin/orders/stats/', admin_order_stats, name='admin-order-stats'),
    path('admin/orders/<int:pk>/', admin_order_detail, name='admin-order-detail'),
    path('admin/orders/<int:pk>/status/', admin_order_status, name='admin-order-status'),
    path('admin/payment-settings/', payment_settings, name='payment-settings'),
    path('admin/shipping-settings/', shipping_settings, name='shipping-settings'),
]
