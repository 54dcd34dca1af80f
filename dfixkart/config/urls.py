"""
URL configuration for the D-Fix Kart backend.

Every app mounts its routes under /api/v1/. Public storefront routes live
under public/, admin dashboard routes under admin/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "D-Fix Kart Administration"
admin.site.site_title = "D-Fix Kart Admin Portal"
admin.site.index_title = "Welcome to D-Fix Kart Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('dfixkart.core.urls')),
    path('api/v1/', include('dfixkart.catalog.urls')),
    path('api/v1/', include('dfixkart.inventory.urls')),
    path('api/v1/', include('dfixkart.pricing.urls')),
    path('api/v1/', include('dfixkart.accounts.urls')),
    path('api/v1/', include('dfixkart.cart.urls')),
    path('api/v1/', include('dfixkart.orders.urls')),
    path('api/v1/', include('dfixkart.returns.urls')),
    path('api/v1/', include('dfixkart.referrals.urls')),
    path('api/v1/', include('dfixkart.content.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]

handler404 = 'dfixkart.core.exceptions.route_not_found'
handler500 = 'dfixkart.core.exceptions.server_error'
