from django.urls import path
from .views import (
    public_blog_list, public_blog_detail, public_blog_categories, public_faqs, contact_submit, public_banners,
    admin_blog_list_create, admin_blog_detail, admin_blog_category_list_create, admin_blog_category_detail,
    admin_faq_list_create, admin_faq_detail, admin_banner_list_create, admin_banner_detail,
    admin_contact_list, admin_contact_detail,
)

urlpatterns = [
    path('content/blog/', public_blog_list, name='public-blog-list'),
    path('content/blog-categories/', public_blog_categories, name='public-blog-categories'),
    path('content/blog/<slug:slug>/', public_blog_detail, name='public-blog-detail'),
    path('content/faqs/', public_faqs, name='public-faqs'),
    path('content/contact/', contact_submit, name='contact-submit'),
    path('public/banners/', public_banners, name='public-banners'),

    path('admin/blog/', admin_blog_list_create, name='admin-blog-list'),
    path('admin/blog/<int:pk>/', admin_blog_detail, name='admin-blog-detail'),
    path('admin/blog-categories/', admin_blog_category_list_create, name='admin-blog-category-list'),
    path('admin/blog-categories/<int:pk>/', admin_blog_category_detail, name='admin-blog-category-detail'),
    path('admin/faqs/', admin_faq_list_create, name='admin-faq-list'),
    path('admin/faqs/<int:pk>/', admin_faq_detail, name='admin-faq-detail'),
    path('admin/banners/', admin_banner_list_create, name='admin-banner-list'),
    path('admin/banners/<int:pk>/', admin_banner_detail, name='admin-banner-detail'),
    path('admin/contact-submissions/', admin_contact_list, name='admin-contact-list'),
    path('admin/contact-submissions/<int:pk>/', admin_contact_detail, name='admin-contact-detail'),
]
