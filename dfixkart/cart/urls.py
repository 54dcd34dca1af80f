from django.urls import path
from .views import cart_detail, cart_add, cart_update, cart_remove, cart_clear

urlpatterns = [
    path('cart/', cart_detail, name='cart-detail'),
    path('cart/add/', cart_add, name='cart-add'),
    path('cart/update/<int:pk>/', cart_update, name='cart-update'),
    path('cart/remove/<int:pk>/', cart_remove, name='cart-remove'),
    path('cart/clear/', cart_clear, name='cart-clear'),
]
