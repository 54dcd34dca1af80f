from django.urls import path
from .views import (
    public_category_list, categories_with_subcategories, category_products,
    public_product_list, product_max_price, public_product_detail, public_variant_detail,
    public_brand_list, public_price_visibility,
    category_list_create, category_detail, brand_list_create, brand_detail,
    product_list_create, product_detail, product_variants, variant_detail,
    pricing_slab_list_create, pricing_slab_detail, moq_list_create, moq_detail,
    admin_price_visibility, public_product_sections,
    section_list_create, section_detail, section_add_product, section_remove_product, section_reorder,
    attribute_list_create, attribute_detail, attribute_values, attribute_value_detail,
)

urlpatterns = [
    # Storefront
    path('public/categories/', public_category_list, name='public-category-list'),
    path('public/categories-with-subcategories/', categories_with_subcategories, name='public-category-tree'),
    path('public/categories/<slug:slug>/products/', category_products, name='public-category-products'),
    path('public/products/', public_product_list, name='public-product-list'),
    path('public/products/max-price/', product_max_price, name='public-product-max-price'),
    path('public/products/variants/<int:pk>/', public_variant_detail, name='public-variant-detail'),
    path('public/products/<slug:slug>/', public_product_detail, name='public-product-detail'),
    path('public/brands/', public_brand_list, name='public-brand-list'),
    path('public/price-visibility-settings/', public_price_visibility, name='public-price-visibility'),
    path('public/product-sections/', public_product_sections, name='public-product-sections'),

    # Admin catalog
    path('admin/categories/', category_list_create, name='category-list-create'),
    path('admin/categories/<int:pk>/', category_detail, name='category-detail'),
    path('admin/brands/', brand_list_create, name='brand-list-create'),
    path('admin/brands/<int:pk>/', brand_detail, name='brand-detail'),
    path('admin/products/', product_list_create, name='product-list-create'),
    path('admin/products/<int:pk>/', product_detail, name='product-detail'),
    path('admin/products/<int:product_pk>/variants/', product_variants, name='product-variants'),
    path('admin/variants/<int:pk>/', variant_detail, name='variant-detail'),
    path('admin/pricing-slabs/', pricing_slab_list_create, name='pricing-slab-list-create'),
    path('admin/pricing-slabs/<int:pk>/', pricing_slab_detail, name='pricing-slab-detail'),
    path('admin/moq-settings/', moq_list_create, name='moq-list-create'),
    path('admin/moq-settings/<int:pk>/', moq_detail, name='moq-detail'),
    path('admin/price-visibility-settings/', admin_price_visibility, name='admin-price-visibility'),
    path('admin/product-sections/', section_list_create, name='section-list-create'),
    path('admin/product-sections/<int:pk>/', section_detail, name='section-detail'),
    path('admin/product-sections/<int:pk>/products/', section_add_product, name='section-add-product'),
    path('admin/product-sections/<int:pk>/products/<int:product_id>/', section_remove_product,
         name='section-remove-product'),
    path('admin/product-sections/<int:pk>/reorder/', section_reorder, name='section-reorder'),
    path('admin/attributes/', attribute_list_create, name='attribute-list-create'),
    path('admin/attributes/<int:pk>/', attribute_detail, name='attribute-detail'),
    path('admin/attributes/<int:pk>/values/', attribute_values, name='attribute-values'),
    path('admin/attribute-values/<int:pk>/', attribute_value_detail, name='attribute-value-detail'),
]
