from django.urls import path
from .views import (
    public_flash_sales,
    flash_sale_list_create, flash_sale_detail, flash_sale_toggle_status,
    coupon_verify, coupon_apply, coupon_remove,
    coupon_list_create, coupon_detail,
)

urlpatterns = [
    path('public/flash-sales/', public_flash_sales, name='public-flash-sales'),

    # Flash sale admin
    path('admin/flash-sales/', flash_sale_list_create, name='flash-sale-list-create'),
    path('admin/flash-sales/<int:pk>/', flash_sale_detail, name='flash-sale-detail'),
    path('admin/flash-sales/<int:pk>/toggle-status/', flash_sale_toggle_status, name='flash-sale-toggle-status'),

    # Coupons
    path('coupons/verify/', coupon_verify, name='coupon-verify'),
    path('coupons/apply/', coupon_apply, name='coupon-apply'),
    path('coupons/remove/', coupon_remove, name='coupon-remove'),
    path('admin/coupons/', coupon_list_create, name='coupon-list-create'),
    path('admin/coupons/<int:pk>/', coupon_detail, name='coupon-detail'),
]
