import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.db import transaction
from django.db.models import Q, Count, Max, Min, Prefetch
from django.shortcuts import get_object_or_404
from dfixkart.core.exceptions import ApiError
from dfixkart.core.cache_utils import (
    cached_query, CATEGORIES_CACHE_TTL, CATEGORIES_PREFIX,
    PRODUCTS_LIST_CACHE_TTL, get_cached_products_list, cache_products_list,
    PRODUCT_DETAIL_CACHE_TTL, get_cached_product_detail, cache_product_detail,
)
from dfixkart.core.pagination import paginate_queryset
from dfixkart.core.permissions import require_resource_permission
from dfixkart.core.responses import api_response, validation_error_response
from dfixkart.core.utils import create_audit_log, parse_bool
from dfixkart.pricing.services import flash_sales_for_products, active_flash_sale_for, flash_sale_cache_ttl, hide_prices
from .filters import ProductFilter
from .models import (
    Category, Brand, Product, ProductVariant, PricingSlab, MOQSetting, PriceVisibilitySettings,
    Attribute, AttributeValue, ProductSection, ProductSectionItem,
)
from .serializers import (
    CategorySerializer, PublicCategorySerializer, CategoryTreeSerializer, BrandSerializer,
    ProductSerializer, ProductVariantSerializer, ProductCardSerializer, ProductDetailSerializer,
    PublicVariantSerializer, PricingSlabSerializer, MOQSettingSerializer, PriceVisibilitySettingsSerializer,
    AttributeSerializer, AttributeValueSerializer, ProductSectionSerializer,
)

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    'created_at': 'created_at',
    'name': 'name',
    'price': 'min_price',
}


def storefront_products():
    """Active products with everything the card serializers touch"""
    return Product.objects.filter(is_active=True).select_related(
        'category', 'category__parent', 'brand'
    ).prefetch_related('variants', 'pricing_slabs')


def should_hide_prices(request):
    if request.user and request.user.is_authenticated:
        return False
    return PriceVisibilitySettings.load().hide_prices_for_guests


def apply_price_visibility(request, products):
    """Blank prices for guests when the store hides them"""
    if not should_hide_prices(request):
        return products
    hidden = []
    for product in products:
        item = hide_prices(product)
        if 'variants' in item:
            item['variants'] = [hide_prices(v) for v in item['variants']]
        hidden.append(item)
    return hidden


def serialize_product_cards(products):
    flash_sales = flash_sales_for_products([p.id for p in products])
    return ProductCardSerializer(products, many=True, context={'flash_sales': flash_sales}).data


def sort_products(queryset, sort, order):
    field = SORT_FIELDS.get(sort, 'created_at')
    if field == 'min_price':
        queryset = queryset.annotate(min_price=Min('variants__price', filter=Q(variants__is_active=True)))
    prefix = '' if order == 'asc' else '-'
    return queryset.order_by(f'{prefix}{field}', '-id')


# ==================== PUBLIC: CATEGORIES ====================

@cached_query(cache_ttl=CATEGORIES_CACHE_TTL, key_prefix=CATEGORIES_PREFIX)
def get_public_categories():
    categories = Category.objects.filter(is_active=True).annotate(
        product_count=Count('products', filter=Q(products__is_active=True))
    )
    return PublicCategorySerializer(categories, many=True).data


@cached_query(cache_ttl=CATEGORIES_CACHE_TTL, key_prefix=CATEGORIES_PREFIX)
def get_category_tree():
    roots = Category.objects.filter(is_active=True, parent__isnull=True).prefetch_related(
        Prefetch('children', queryset=Category.objects.annotate(
            product_count=Count('products', filter=Q(products__is_active=True))
        ))
    )
    return CategoryTreeSerializer(roots, many=True).data


@api_view(['GET'])
@permission_classes([AllowAny])
def public_category_list(request):
    return api_response(get_public_categories(), 'Categories retrieved successfully')


@api_view(['GET'])
@permission_classes([AllowAny])
def categories_with_subcategories(request):
    return api_response(get_category_tree(), 'Categories retrieved successfully')


@api_view(['GET'])
@permission_classes([AllowAny])
def category_products(request, slug):
    """Products in a category and its subcategories"""
    category = get_object_or_404(Category, slug=slug, is_active=True)
    queryset = storefront_products().filter(Q(category=category) | Q(category__parent=category))
    queryset = sort_products(queryset, request.query_params.get('sort'), request.query_params.get('order'))

    products, pagination = paginate_queryset(queryset, request)
    data = {
        'category': PublicCategorySerializer(category).data,
        'products': apply_price_visibility(request, serialize_product_cards(products)),
        'pagination': pagination,
    }
    return api_response(data, 'Products retrieved successfully')


# ==================== PUBLIC: PRODUCTS ====================

@api_view(['GET'])
@permission_classes([AllowAny])
def public_product_list(request):
    """
    Storefront product listing.

    Query params: search, category, brand, min_price, max_price, featured,
    product_type, sort (created_at|name|price), order (asc|desc), page, limit.
    """
    filters_dict = {key: request.query_params.get(key) for key in request.query_params}
    data, cache_key = get_cached_products_list(filters_dict)

    if data is None:
        product_filter = ProductFilter(request.query_params, queryset=storefront_products())
        if not product_filter.is_valid():
            return validation_error_response(product_filter.errors)
        queryset = sort_products(
            product_filter.qs,
            request.query_params.get('sort'),
            request.query_params.get('order'),
        )
        products, pagination = paginate_queryset(queryset, request)
        data = {
            'products': serialize_product_cards(products),
            'pagination': pagination,
        }
        cache_products_list(cache_key, data, ttl=flash_sale_cache_ttl(PRODUCTS_LIST_CACHE_TTL))

    payload = dict(data)
    payload['products'] = apply_price_visibility(request, data['products'])
    return api_response(payload, 'Products retrieved successfully')


@api_view(['GET'])
@permission_classes([AllowAny])
def product_max_price(request):
    result = ProductVariant.objects.filter(is_active=True, product__is_active=True).aggregate(max_price=Max('price'))
    return api_response({'max_price': result['max_price'] or 0}, 'Max price retrieved successfully')


@api_view(['GET'])
@permission_classes([AllowAny])
def public_product_detail(request, slug):
    data, cache_key = get_cached_product_detail(slug)

    if data is None:
        product = get_object_or_404(storefront_products(), slug=slug)
        flash_sale = active_flash_sale_for(product)
        data = ProductDetailSerializer(product, context={'flash_sales': {product.id: flash_sale}}).data
        cache_product_detail(cache_key, data, ttl=flash_sale_cache_ttl(PRODUCT_DETAIL_CACHE_TTL))

    return api_response(apply_price_visibility(request, [data])[0], 'Product retrieved successfully')


@api_view(['GET'])
@permission_classes([AllowAny])
def public_variant_detail(request, pk):
    variant = get_object_or_404(
        ProductVariant.objects.select_related('product').prefetch_related('pricing_slabs'),
        pk=pk, is_active=True, product__is_active=True,
    )
    data = PublicVariantSerializer(variant, context={'flash_sale': active_flash_sale_for(variant.product)}).data
    data['product_id'] = variant.product_id
    data['product_name'] = variant.product.name
    data['product_slug'] = variant.product.slug
    return api_response(apply_price_visibility(request, [data])[0], 'Variant retrieved successfully')


@api_view(['GET'])
@permission_classes([AllowAny])
def public_brand_list(request):
    brands = Brand.objects.filter(is_active=True)
    return api_response(BrandSerializer(brands, many=True).data, 'Brands retrieved successfully')


@api_view(['GET'])
@permission_classes([AllowAny])
def public_price_visibility(request):
    settings_obj = PriceVisibilitySettings.load()
    return api_response(PriceVisibilitySettingsSerializer(settings_obj).data, 'Price visibility settings retrieved')


@api_view(['GET'])
@permission_classes([AllowAny])
def public_product_sections(request):
    """Active sections, each with up to max_products active product cards"""
    items = ProductSectionItem.objects.filter(product__is_active=True).select_related(
        'product__category', 'product__category__parent', 'product__brand'
    ).prefetch_related('product__variants', 'product__pricing_slabs')
    sections = ProductSection.objects.filter(is_active=True).prefetch_related(Prefetch('items', queryset=items))

    data = []
    for section in sections:
        products = [item.product for item in section.items.all()][:section.max_products]
        data.append({
            'id': section.id,
            'name': section.name,
            'slug': section.slug,
            'description': section.description,
            'icon': section.icon,
            'color': section.color,
            'products': apply_price_visibility(request, serialize_product_cards(products)),
        })
    return api_response(data, 'Product sections retrieved successfully')


# ==================== ADMIN: CATEGORIES & BRANDS ====================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_resource_permission('categories')])
def category_list_create(request):
    if request.method == 'GET':
        queryset = Category.objects.select_related('parent').all()
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(slug__icontains=search))
        return api_response(CategorySerializer(queryset, many=True).data, 'Categories retrieved successfully')

    serializer = CategorySerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    category = serializer.save()
    create_audit_log(request, 'create', 'Category', category.id, object_name=category.name,
                     changes={'name': category.name, 'slug': category.slug})
    logger.info(f"Category created: {category.slug}")
    return api_response(CategorySerializer(category).data, 'Category created successfully', status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('categories')])
def category_detail(request, pk):
    category = get_object_or_404(Category, pk=pk)

    if request.method == 'GET':
        return api_response(CategorySerializer(category).data, 'Category retrieved successfully')

    if request.method == 'DELETE':
        if category.products.filter(is_active=True).exists():
            raise ApiError(status.HTTP_400_BAD_REQUEST, f'Category "{category.name}" still has active products')
        create_audit_log(request, 'delete', 'Category', category.id, object_name=category.name)
        category.delete()
        return api_response(None, 'Category deleted successfully')

    serializer = CategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    category = serializer.save()
    create_audit_log(request, 'update', 'Category', category.id, object_name=category.name, changes=request.data)
    return api_response(CategorySerializer(category).data, 'Category updated successfully')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def brand_list_create(request):
    if request.method == 'GET':
        return api_response(BrandSerializer(Brand.objects.all(), many=True).data, 'Brands retrieved successfully')

    serializer = BrandSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    brand = serializer.save()
    create_audit_log(request, 'create', 'Brand', brand.id, object_name=brand.name)
    return api_response(BrandSerializer(brand).data, 'Brand created successfully', status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def brand_detail(request, pk):
    brand = get_object_or_404(Brand, pk=pk)

    if request.method == 'GET':
        return api_response(BrandSerializer(brand).data, 'Brand retrieved successfully')

    if request.method == 'DELETE':
        create_audit_log(request, 'delete', 'Brand', brand.id, object_name=brand.name)
        brand.delete()
        return api_response(None, 'Brand deleted successfully')

    serializer = BrandSerializer(brand, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    brand = serializer.save()
    create_audit_log(request, 'update', 'Brand', brand.id, object_name=brand.name, changes=request.data)
    return api_response(BrandSerializer(brand).data, 'Brand updated successfully')


# ==================== ADMIN: PRODUCTS & VARIANTS ====================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def product_list_create(request):
    if request.method == 'GET':
        queryset = Product.objects.select_related('category', 'brand').prefetch_related(
            'variants', 'variants__attribute_values__attribute'
        )
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(slug__icontains=search) | Q(variants__sku__icontains=search)
            ).distinct()
        category = request.query_params.get('category')
        if category:
            queryset = queryset.filter(category_id=category)
        is_active = request.query_params.get('is_active')
        if is_active is not None and is_active != '':
            queryset = queryset.filter(is_active=parse_bool(is_active))

        products, pagination = paginate_queryset(queryset, request, default_limit=20)
        return api_response({
            'products': ProductSerializer(products, many=True).data,
            'pagination': pagination,
        }, 'Products retrieved successfully')

    serializer = ProductSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    product = serializer.save()
    create_audit_log(request, 'create', 'Product', product.id, object_name=product.name,
                     changes={'name': product.name, 'slug': product.slug})
    logger.info(f"Product created: {product.slug}")
    return api_response(ProductSerializer(product).data, 'Product created successfully', status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def product_detail(request, pk):
    product = get_object_or_404(Product.objects.prefetch_related('variants'), pk=pk)

    if request.method == 'GET':
        return api_response(ProductSerializer(product).data, 'Product retrieved successfully')

    if request.method == 'DELETE':
        # Soft delete keeps order history intact
        product.is_active = False
        product.save(update_fields=['is_active', 'updated_at'])
        create_audit_log(request, 'delete', 'Product', product.id, object_name=product.name,
                         changes={'is_active': False})
        logger.info(f"Product deactivated: {product.slug}")
        return api_response(None, 'Product deleted successfully')

    serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    product = serializer.save()
    create_audit_log(request, 'update', 'Product', product.id, object_name=product.name, changes=request.data)
    return api_response(ProductSerializer(product).data, 'Product updated successfully')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def product_variants(request, product_pk):
    product = get_object_or_404(Product, pk=product_pk)

    if request.method == 'GET':
        variants = product.variants.all()
        return api_response(ProductVariantSerializer(variants, many=True).data, 'Variants retrieved successfully')

    data = request.data.copy()
    data['product'] = product.id
    serializer = ProductVariantSerializer(data=data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    variant = serializer.save()
    create_audit_log(request, 'create', 'ProductVariant', variant.id, object_name=str(variant),
                     object_reference=variant.sku)
    return api_response(ProductVariantSerializer(variant).data, 'Variant created successfully', status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def variant_detail(request, pk):
    variant = get_object_or_404(ProductVariant.objects.select_related('product'), pk=pk)

    if request.method == 'GET':
        return api_response(ProductVariantSerializer(variant).data, 'Variant retrieved successfully')

    if request.method == 'DELETE':
        variant.is_active = False
        variant.save(update_fields=['is_active', 'updated_at'])
        create_audit_log(request, 'delete', 'ProductVariant', variant.id, object_name=str(variant),
                         object_reference=variant.sku, changes={'is_active': False})
        return api_response(None, 'Variant deleted successfully')

    old_price, old_sale_price = variant.price, variant.sale_price
    serializer = ProductVariantSerializer(variant, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    variant = serializer.save()

    if variant.price != old_price or variant.sale_price != old_sale_price:
        create_audit_log(request, 'price_change', 'ProductVariant', variant.id, object_name=str(variant),
                         object_reference=variant.sku,
                         changes={
                             'price': {'old': str(old_price), 'new': str(variant.price)},
                             'sale_price': {'old': str(old_sale_price), 'new': str(variant.sale_price)},
                         })
    else:
        create_audit_log(request, 'update', 'ProductVariant', variant.id, object_name=str(variant),
                         object_reference=variant.sku, changes=request.data)
    return api_response(ProductVariantSerializer(variant).data, 'Variant updated successfully')


# ==================== ADMIN: SLABS & MOQ ====================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def pricing_slab_list_create(request):
    if request.method == 'GET':
        queryset = PricingSlab.objects.all()
        product_id = request.query_params.get('product_id')
        if product_id:
            queryset = queryset.filter(Q(product_id=product_id) | Q(variant__product_id=product_id))
        variant_id = request.query_params.get('variant_id')
        if variant_id:
            queryset = queryset.filter(variant_id=variant_id)
        return api_response(PricingSlabSerializer(queryset, many=True).data, 'Pricing slabs retrieved successfully')

    serializer = PricingSlabSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    slab = serializer.save()
    create_audit_log(request, 'create', 'PricingSlab', slab.id, object_name=str(slab))
    return api_response(PricingSlabSerializer(slab).data, 'Pricing slab created successfully', status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def pricing_slab_detail(request, pk):
    slab = get_object_or_404(PricingSlab, pk=pk)

    if request.method == 'GET':
        return api_response(PricingSlabSerializer(slab).data, 'Pricing slab retrieved successfully')

    if request.method == 'DELETE':
        create_audit_log(request, 'delete', 'PricingSlab', slab.id, object_name=str(slab))
        slab.delete()
        return api_response(None, 'Pricing slab deleted successfully')

    serializer = PricingSlabSerializer(slab, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    slab = serializer.save()
    create_audit_log(request, 'update', 'PricingSlab', slab.id, object_name=str(slab), changes=request.data)
    return api_response(PricingSlabSerializer(slab).data, 'Pricing slab updated successfully')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def moq_list_create(request):
    if request.method == 'GET':
        queryset = MOQSetting.objects.all().order_by('scope', 'id')
        scope = request.query_params.get('scope')
        if scope:
            queryset = queryset.filter(scope=scope.upper())
        return api_response(MOQSettingSerializer(queryset, many=True).data, 'MOQ settings retrieved successfully')

    serializer = MOQSettingSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    moq = serializer.save()
    create_audit_log(request, 'create', 'MOQSetting', moq.id, object_name=str(moq))
    return api_response(MOQSettingSerializer(moq).data, 'MOQ setting created successfully', status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def moq_detail(request, pk):
    moq = get_object_or_404(MOQSetting, pk=pk)

    if request.method == 'GET':
        return api_response(MOQSettingSerializer(moq).data, 'MOQ setting retrieved successfully')

    if request.method == 'DELETE':
        create_audit_log(request, 'delete', 'MOQSetting', moq.id, object_name=str(moq))
        moq.delete()
        return api_response(None, 'MOQ setting deleted successfully')

    serializer = MOQSettingSerializer(moq, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    moq = serializer.save()
    create_audit_log(request, 'update', 'MOQSetting', moq.id, object_name=str(moq), changes=request.data)
    return api_response(MOQSettingSerializer(moq).data, 'MOQ setting updated successfully')


@api_view(['GET', 'PATCH', 'PUT'])
@permission_classes([IsAuthenticated, require_resource_permission('settings')])
def admin_price_visibility(request):
    settings_obj = PriceVisibilitySettings.load()

    if request.method == 'GET':
        return api_response(PriceVisibilitySettingsSerializer(settings_obj).data, 'Price visibility settings retrieved')

    serializer = PriceVisibilitySettingsSerializer(settings_obj, data=request.data, partial=True)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    settings_obj = serializer.save()
    create_audit_log(request, 'settings_update', 'PriceVisibilitySettings', settings_obj.id,
                     changes={'hide_prices_for_guests': settings_obj.hide_prices_for_guests})
    logger.info(f"Price visibility updated: hide_prices_for_guests={settings_obj.hide_prices_for_guests}")
    return api_response(PriceVisibilitySettingsSerializer(settings_obj).data, 'Price visibility settings updated')


# ==================== ADMIN: PRODUCT SECTIONS ====================

def parse_display_order(raw, default):
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Display order must be a whole number')


def section_queryset():
    return ProductSection.objects.prefetch_related(
        Prefetch('items', queryset=ProductSectionItem.objects.select_related('product'))
    )


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def section_list_create(request):
    if request.method == 'GET':
        return api_response(ProductSectionSerializer(section_queryset(), many=True).data,
                            'Product sections retrieved successfully')

    serializer = ProductSectionSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    section = serializer.save()
    create_audit_log(request, 'create', 'ProductSection', section.id, object_name=section.name,
                     changes={'name': section.name, 'slug': section.slug})
    logger.info(f"Product section created: {section.slug}")
    return api_response(ProductSectionSerializer(section).data, 'Product section created successfully',
                        status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def section_detail(request, pk):
    section = get_object_or_404(section_queryset(), pk=pk)

    if request.method == 'GET':
        return api_response(ProductSectionSerializer(section).data, 'Product section retrieved successfully')

    if request.method == 'DELETE':
        create_audit_log(request, 'delete', 'ProductSection', section.id, object_name=section.name)
        section.delete()
        return api_response(None, 'Product section deleted successfully')

    serializer = ProductSectionSerializer(section, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    section = serializer.save()
    create_audit_log(request, 'update', 'ProductSection', section.id, object_name=section.name, changes=request.data)
    return api_response(ProductSectionSerializer(section).data, 'Product section updated successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def section_add_product(request, pk):
    section = get_object_or_404(ProductSection, pk=pk)
    product_id = request.data.get('product_id')
    if not product_id:
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Product ID is required')
    try:
        product = Product.objects.get(pk=int(product_id))
    except (TypeError, ValueError, Product.DoesNotExist):
        raise ApiError(status.HTTP_404_NOT_FOUND, 'Product not found')

    with transaction.atomic():
        # Row lock serialises concurrent adds against the max_products check
        section = ProductSection.objects.select_for_update().get(pk=section.pk)
        if section.items.filter(product=product).exists():
            raise ApiError(status.HTTP_400_BAD_REQUEST, 'Product is already in this section')
        count = section.items.count()
        if count >= section.max_products:
            raise ApiError(status.HTTP_400_BAD_REQUEST,
                           f'Section has reached maximum limit of {section.max_products} products')
        item = ProductSectionItem.objects.create(
            section=section, product=product,
            display_order=parse_display_order(request.data.get('display_order'), count),
        )

    create_audit_log(request, 'update', 'ProductSection', section.id, object_name=section.name,
                     changes={'added_product': product.id, 'display_order': item.display_order})
    section = get_object_or_404(section_queryset(), pk=section.pk)
    return api_response(ProductSectionSerializer(section).data, 'Product added to section successfully',
                        status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def section_remove_product(request, pk, product_id):
    section = get_object_or_404(ProductSection, pk=pk)
    item = section.items.filter(product_id=product_id).first()
    if item is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, 'Product not found in this section')
    item.delete()
    create_audit_log(request, 'update', 'ProductSection', section.id, object_name=section.name,
                     changes={'removed_product': product_id})
    return api_response(None, 'Product removed from section successfully')


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def section_reorder(request, pk):
    """Body: {"product_orders": [{"product_id": 3, "display_order": 0}, ...]}"""
    section = get_object_or_404(ProductSection, pk=pk)
    product_orders = request.data.get('product_orders')
    if not isinstance(product_orders, list):
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'product_orders must be a list')

    with transaction.atomic():
        for entry in product_orders:
            if not isinstance(entry, dict) or 'product_id' not in entry:
                raise ApiError(status.HTTP_400_BAD_REQUEST, 'Each entry needs product_id and display_order')
            display_order = parse_display_order(entry.get('display_order'), None)
            if display_order is None:
                raise ApiError(status.HTTP_400_BAD_REQUEST, 'Each entry needs product_id and display_order')
            section.items.filter(product_id=entry['product_id']).update(display_order=display_order)

    create_audit_log(request, 'update', 'ProductSection', section.id, object_name=section.name,
                     changes={'product_orders': product_orders})
    section = get_object_or_404(section_queryset(), pk=section.pk)
    return api_response(ProductSectionSerializer(section).data, 'Section products reordered successfully')


# ==================== ADMIN: ATTRIBUTES ====================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def attribute_list_create(request):
    if request.method == 'GET':
        queryset = Attribute.objects.prefetch_related('values')
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(name__icontains=search)
        return api_response(AttributeSerializer(queryset, many=True).data, 'Attributes retrieved successfully')

    serializer = AttributeSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    attribute = serializer.save()
    create_audit_log(request, 'create', 'Attribute', attribute.id, object_name=attribute.name,
                     changes={'name': attribute.name, 'input_type': attribute.input_type})
    return api_response(AttributeSerializer(attribute).data, 'Attribute created successfully', status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def attribute_detail(request, pk):
    attribute = get_object_or_404(Attribute.objects.prefetch_related('values'), pk=pk)

    if request.method == 'GET':
        return api_response(AttributeSerializer(attribute).data, 'Attribute retrieved successfully')

    if request.method == 'DELETE':
        if AttributeValue.objects.filter(attribute=attribute, variants__isnull=False).exists():
            raise ApiError(status.HTTP_400_BAD_REQUEST,
                           'Cannot delete attribute. It is being used by product variants.')
        create_audit_log(request, 'delete', 'Attribute', attribute.id, object_name=attribute.name)
        attribute.delete()
        return api_response(None, 'Attribute deleted successfully')

    serializer = AttributeSerializer(attribute, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    attribute = serializer.save()
    create_audit_log(request, 'update', 'Attribute', attribute.id, object_name=attribute.name, changes=request.data)
    return api_response(AttributeSerializer(attribute).data, 'Attribute updated successfully')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def attribute_values(request, pk):
    attribute = get_object_or_404(Attribute, pk=pk)

    if request.method == 'GET':
        return api_response(AttributeValueSerializer(attribute.values.all(), many=True).data,
                            'Attribute values retrieved successfully')

    serializer = AttributeValueSerializer(data=request.data, context={'attribute': attribute})
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    value = serializer.save(attribute=attribute)
    create_audit_log(request, 'create', 'AttributeValue', value.id, object_name=str(value))
    return api_response(AttributeValueSerializer(value).data, 'Attribute value created successfully',
                        status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('products')])
def attribute_value_detail(request, pk):
    value = get_object_or_404(AttributeValue.objects.select_related('attribute'), pk=pk)

    if request.method == 'GET':
        return api_response(AttributeValueSerializer(value).data, 'Attribute value retrieved successfully')

    if request.method == 'DELETE':
        if value.variants.exists():
            raise ApiError(status.HTTP_400_BAD_REQUEST,
                           'Cannot delete attribute value. It is being used by product variants.')
        create_audit_log(request, 'delete', 'AttributeValue', value.id, object_name=str(value))
        value.delete()
        return api_response(None, 'Attribute value deleted successfully')

    serializer = AttributeValueSerializer(value, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    value = serializer.save()
    create_audit_log(request, 'update', 'AttributeValue', value.id, object_name=str(value), changes=request.data)
    return api_response(AttributeValueSerializer(value).data, 'Attribute value updated successfully')
