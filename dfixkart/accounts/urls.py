from django.urls import path
from .views import (
    address_list_create, address_detail, address_set_default,
    wishlist, wishlist_remove,
    public_product_reviews, user_reviews, user_review_detail,
    admin_review_list, admin_review_stats, admin_review_status, admin_review_reply, admin_review_delete,
)

urlpatterns = [
    path('users/addresses/', address_list_create, name='address-list-create'),
    path('users/addresses/<int:pk>/', address_detail, name='address-detail'),
    path('users/addresses/<int:pk>/default/', address_set_default, name='address-set-default'),

    path('users/wishlist/', wishlist, name='wishlist'),
    path('users/wishlist/<int:pk>/', wishlist_remove, name='wishlist-remove'),

    path('public/products/<slug:slug>/reviews/', public_product_reviews, name='public-product-reviews'),
    path('users/reviews/', user_reviews, name='user-reviews'),
    path('users/reviews/<int:pk>/', user_review_detail, name='user-review-detail'),

    path('admin/reviews/', admin_review_list, name='admin-review-list'),
    path('admin/reviews/stats/', admin_review_stats, name='admin-review-stats'),
    path('admin/reviews/<int:pk>/', admin_review_delete, name='admin-review-delete'),
    path('admin/reviews/<int:pk>/status/', admin_review_status, name='admin-review-status'),
    path('admin/reviews/<int:pk>/reply/', admin_review_reply, name='admin-review-reply'),
]
