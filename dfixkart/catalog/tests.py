"""
Test suite for the catalog: storefront browsing, price display and admin CRUD
"""
from decimal import Decimal
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from dfixkart.core.models import AuditLog
from dfixkart.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from dfixkart.catalog.models import (
    Category, Product, ProductVariant, PriceVisibilitySettings,
    Attribute, AttributeValue, ProductSection, ProductSectionItem,
)


class PublicCategoryTests(TestCase):
    """Public category endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.parent = TestDataFactory.create_category(name='Hand Tools')
        self.child = TestDataFactory.create_category(name='Spanners', parent=self.parent)
        TestDataFactory.create_category(name='Hidden', is_active=False)

    def test_category_items_have_id_slug_name(self):
        response = self.client.get('/api/v1/public/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        for item in response.data['data']:
            self.assertIn('id', item)
            self.assertIn('slug', item)
            self.assertIn('name', item)

    def test_inactive_categories_hidden(self):
        response = self.client.get('/api/v1/public/categories/')
        names = [item['name'] for item in response.data['data']]
        self.assertIn('Hand Tools', names)
        self.assertNotIn('Hidden', names)

    def test_tree_nests_children(self):
        response = self.client.get('/api/v1/public/categories-with-subcategories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        roots = {item['slug']: item for item in response.data['data']}
        self.assertIn(self.parent.slug, roots)
        self.assertEqual([c['slug'] for c in roots[self.parent.slug]['children']], [self.child.slug])

    def test_category_products_include_subcategories(self):
        parent_product, _ = TestDataFactory.create_product_with_variant(category=self.parent)
        child_product, _ = TestDataFactory.create_product_with_variant(category=self.child)
        other, _ = TestDataFactory.create_product_with_variant()

        response = self.client.get(f'/api/v1/public/categories/{self.parent.slug}/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = {p['id'] for p in response.data['data']['products']}
        self.assertEqual(ids, {parent_product.id, child_product.id})
        self.assertEqual(response.data['data']['category']['slug'], self.parent.slug)

    def test_unknown_category_404(self):
        response = self.client.get('/api/v1/public/categories/no-such-category/products/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class PublicProductListTests(TestCase):
    """Listing, filtering, sorting and pagination"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.tools = TestDataFactory.create_category(name='Power Tools')
        self.brand = TestDataFactory.create_brand(name='Bosch')
        self.drill, _ = TestDataFactory.create_product_with_variant(
            name='Cordless Drill', price='2500.00', category=self.tools, brand=self.brand, is_featured=True
        )
        self.saw, _ = TestDataFactory.create_product_with_variant(
            name='Circular Saw', price='4000.00', category=self.tools, product_type='new'
        )
        self.tape, _ = TestDataFactory.create_product_with_variant(name='Measuring Tape', price='150.00')
        self.inactive, _ = TestDataFactory.create_product_with_variant(name='Old Drill', is_active=False)

    def _ids(self, response):
        return [p['id'] for p in response.data['data']['products']]

    def test_lists_only_active_products(self):
        response = self.client.get('/api/v1/public/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotIn(self.inactive.id, self._ids(response))
        self.assertEqual(response.data['data']['pagination']['total'], 3)

    def test_multi_word_search(self):
        response = self.client.get('/api/v1/public/products/', {'search': 'cordless drill'})
        self.assertEqual(self._ids(response), [self.drill.id])

    def test_plus_in_search_is_a_space(self):
        response = self.client.get('/api/v1/public/products/?search=cordless%2Bdrill')
        self.assertEqual(self._ids(response), [self.drill.id])

    def test_search_matches_brand(self):
        response = self.client.get('/api/v1/public/products/', {'search': 'bosch'})
        self.assertEqual(self._ids(response), [self.drill.id])

    def test_filter_by_category_slug(self):
        response = self.client.get('/api/v1/public/products/', {'category': self.tools.slug})
        self.assertEqual(set(self._ids(response)), {self.drill.id, self.saw.id})

    def test_filter_by_price_range(self):
        response = self.client.get('/api/v1/public/products/', {'min_price': '1000', 'max_price': '3000'})
        self.assertEqual(self._ids(response), [self.drill.id])

    def test_filter_featured_and_type(self):
        response = self.client.get('/api/v1/public/products/', {'featured': 'true'})
        self.assertEqual(self._ids(response), [self.drill.id])
        response = self.client.get('/api/v1/public/products/', {'product_type': 'new,trending'})
        self.assertEqual(self._ids(response), [self.saw.id])

    def test_sort_by_price_ascending(self):
        response = self.client.get('/api/v1/public/products/', {'sort': 'price', 'order': 'asc'})
        self.assertEqual(self._ids(response), [self.tape.id, self.drill.id, self.saw.id])

    def test_page_size_respects_limit(self):
        response = self.client.get('/api/v1/public/products/', {'limit': 2, 'page': 1})
        pagination = response.data['data']['pagination']
        self.assertLessEqual(len(self._ids(response)), 2)
        self.assertEqual(pagination['pages'], 2)

    def test_max_price(self):
        response = self.client.get('/api/v1/public/products/max-price/')
        self.assertEqual(response.data['data']['max_price'], Decimal('4000.00'))


class ProductPriceDisplayTests(TestCase):
    """Card price precedence: flash sale, then sale price, then regular price"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()

    def _card(self, product):
        response = self.client.get('/api/v1/public/products/')
        return next(p for p in response.data['data']['products'] if p['id'] == product.id)

    def test_regular_price(self):
        product, _ = TestDataFactory.create_product_with_variant(price='200.00')
        card = self._card(product)
        self.assertEqual(card['price'], Decimal('200.00'))
        self.assertIsNone(card['original_price'])
        self.assertEqual(card['discount_percentage'], 0)
        self.assertFalse(card['flash_sale_active'])

    def test_sale_price_strikes_regular(self):
        product, _ = TestDataFactory.create_product_with_variant(price='200.00', sale_price='150.00')
        card = self._card(product)
        self.assertEqual(card['price'], Decimal('150.00'))
        self.assertEqual(card['original_price'], Decimal('200.00'))
        self.assertEqual(card['discount_percentage'], 25)

    def test_sale_price_above_regular_is_ignored(self):
        product, _ = TestDataFactory.create_product_with_variant(price='200.00', sale_price='250.00')
        card = self._card(product)
        self.assertEqual(card['price'], Decimal('200.00'))

    def test_running_flash_sale_wins(self):
        product, _ = TestDataFactory.create_product_with_variant(price='200.00', sale_price='150.00')
        TestDataFactory.create_flash_sale(products=[product], discount='20.00')
        card = self._card(product)
        self.assertTrue(card['flash_sale_active'])
        self.assertEqual(card['price'], card['flash_sale']['flash_sale_price'])
        self.assertEqual(card['price'], Decimal('120.00'))
        self.assertEqual(card['original_price'], Decimal('150.00'))

    def test_inactive_flash_sale_falls_back(self):
        product, _ = TestDataFactory.create_product_with_variant(price='200.00', sale_price='150.00')
        TestDataFactory.create_flash_sale(products=[product], discount='20.00', is_active=False)
        card = self._card(product)
        self.assertFalse(card['flash_sale_active'])
        self.assertEqual(card['price'], Decimal('150.00'))

    def test_guest_prices_hidden_when_configured(self):
        product, _ = TestDataFactory.create_product_with_variant(price='200.00')
        settings_obj = PriceVisibilitySettings.load()
        settings_obj.hide_prices_for_guests = True
        settings_obj.save()

        card = self._card(product)
        self.assertIsNone(card['price'])
        self.assertTrue(card['prices_hidden'])

        self.client.authenticate_user(TestDataFactory.create_user())
        card = self._card(product)
        self.assertEqual(card['price'], Decimal('200.00'))


class PublicProductDetailTests(TestCase):
    """Product and variant detail"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.product, self.variant = TestDataFactory.create_product_with_variant(price='300.00', quantity=0)
        TestDataFactory.create_variant(product=self.product, price='350.00', is_active=False)

    def test_detail_lists_active_variants(self):
        response = self.client.get(f'/api/v1/public/products/{self.product.slug}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual([v['id'] for v in data['variants']], [self.variant.id])
        self.assertFalse(data['variants'][0]['in_stock'])
        self.assertIn('moq', data)

    def test_detail_of_inactive_product_404(self):
        self.product.is_active = False
        self.product.save()
        response = self.client.get(f'/api/v1/public/products/{self.product.slug}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_variant_detail(self):
        response = self.client.get(f'/api/v1/public/products/variants/{self.variant.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['product_slug'], self.product.slug)
        self.assertEqual(response.data['data']['price'], Decimal('300.00'))


class AdminCatalogTests(TestCase):
    """Admin CRUD for categories, products, variants, slabs and MOQ"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_category_generates_slug(self):
        response = self.client.post('/api/v1/admin/categories/', {'name': 'Garden Tools'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['slug'], 'garden-tools')

    def test_category_cannot_be_own_parent(self):
        category = TestDataFactory.create_category()
        response = self.client.patch(f'/api/v1/admin/categories/{category.id}/', {'parent': category.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_category_with_active_products_blocked(self):
        category = TestDataFactory.create_category()
        TestDataFactory.create_product(category=category)
        response = self.client.delete(f'/api/v1/admin/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Category.objects.filter(pk=category.pk).exists())

    def test_create_product_and_variant(self):
        category = TestDataFactory.create_category()
        response = self.client.post('/api/v1/admin/products/', {
            'name': 'Impact Driver',
            'category': category.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        product_id = response.data['data']['id']

        response = self.client.post(f'/api/v1/admin/products/{product_id}/variants/', {
            'name': '18V',
            'price': '5999.00',
            'quantity': 10,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['data']['sku'])

    def test_variant_price_must_be_positive(self):
        product = TestDataFactory.create_product()
        response = self.client.post(f'/api/v1/admin/products/{product.id}/variants/', {
            'name': 'Free', 'price': '0', 'quantity': 1,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_product_is_soft(self):
        product = TestDataFactory.create_product()
        response = self.client.delete(f'/api/v1/admin/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        product.refresh_from_db()
        self.assertFalse(product.is_active)

    def test_variant_price_change_is_audited(self):
        _, variant = TestDataFactory.create_product_with_variant(price='100.00')
        response = self.client.patch(f'/api/v1/admin/variants/{variant.id}/', {'price': '120.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        log = AuditLog.objects.get(action='price_change', object_id=str(variant.id))
        self.assertEqual(log.changes['price'], {'old': '100.00', 'new': '120.00'})

    def test_pricing_slab_needs_exactly_one_owner(self):
        product, variant = TestDataFactory.create_product_with_variant()
        response = self.client.post('/api/v1/admin/pricing-slabs/', {
            'product': product.id, 'variant': variant.id, 'min_qty': 10, 'price': '80.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_pricing_slab_max_below_min_rejected(self):
        _, variant = TestDataFactory.create_product_with_variant()
        response = self.client.post('/api/v1/admin/pricing-slabs/', {
            'variant': variant.id, 'min_qty': 10, 'max_qty': 5, 'price': '80.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_moq_variant_scope_requires_variant(self):
        response = self.client.post('/api/v1/admin/moq-settings/', {'scope': 'VARIANT', 'min_qty': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_price_visibility_update(self):
        response = self.client.patch('/api/v1/admin/price-visibility-settings/',
                                     {'hide_prices_for_guests': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(PriceVisibilitySettings.load().hide_prices_for_guests)

    def test_product_list_search_by_sku(self):
        _, variant = TestDataFactory.create_product_with_variant()
        TestDataFactory.create_product_with_variant()
        response = self.client.get('/api/v1/admin/products/', {'search': variant.sku})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']['products']), 1)

    def test_products_permission_required(self):
        limited = TestDataFactory.create_admin(permissions=['orders:read'])
        self.client.authenticate_user(limited)
        response = self.client.get('/api/v1/admin/products/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ProductSectionTests(TestCase):
    """Curated storefront sections"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.section = ProductSection.objects.create(name='Best Sellers', max_products=2)

    def test_create_section_generates_slug(self):
        response = self.client.post('/api/v1/admin/product-sections/', {'name': 'New Arrivals'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['slug'], 'new-arrivals')
        self.assertEqual(response.data['data']['max_products'], 15)

    def test_duplicate_slug_rejected(self):
        response = self.client.post('/api/v1/admin/product-sections/', {
            'name': 'Top Picks', 'slug': self.section.slug,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['slug'], ['Section with this slug already exists'])

    def test_add_product_appends_in_order(self):
        first = TestDataFactory.create_product()
        second = TestDataFactory.create_product()
        url = f'/api/v1/admin/product-sections/{self.section.id}/products/'
        self.assertEqual(self.client.post(url, {'product_id': first.id}, format='json').status_code,
                         status.HTTP_201_CREATED)
        response = self.client.post(url, {'product_id': second.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        items = response.data['data']['items']
        self.assertEqual([i['product'] for i in items], [first.id, second.id])
        self.assertEqual([i['display_order'] for i in items], [0, 1])

    def test_add_product_requires_id(self):
        response = self.client.post(f'/api/v1/admin/product-sections/{self.section.id}/products/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Product ID is required')

    def test_add_unknown_product_404(self):
        response = self.client.post(f'/api/v1/admin/product-sections/{self.section.id}/products/',
                                    {'product_id': 999999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_add_product_twice_rejected(self):
        product = TestDataFactory.create_product()
        ProductSectionItem.objects.create(section=self.section, product=product)
        response = self.client.post(f'/api/v1/admin/product-sections/{self.section.id}/products/',
                                    {'product_id': product.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Product is already in this section')

    def test_section_limit_enforced(self):
        for _ in range(2):
            ProductSectionItem.objects.create(section=self.section, product=TestDataFactory.create_product())
        response = self.client.post(f'/api/v1/admin/product-sections/{self.section.id}/products/',
                                    {'product_id': TestDataFactory.create_product().id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Section has reached maximum limit of 2 products')

    def test_remove_product(self):
        product = TestDataFactory.create_product()
        ProductSectionItem.objects.create(section=self.section, product=product)
        url = f'/api/v1/admin/product-sections/{self.section.id}/products/{product.id}/'
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_200_OK)
        self.assertFalse(self.section.items.exists())

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Product not found in this section')

    def test_reorder(self):
        first = TestDataFactory.create_product()
        second = TestDataFactory.create_product()
        ProductSectionItem.objects.create(section=self.section, product=first, display_order=0)
        ProductSectionItem.objects.create(section=self.section, product=second, display_order=1)
        response = self.client.patch(f'/api/v1/admin/product-sections/{self.section.id}/reorder/', {
            'product_orders': [
                {'product_id': first.id, 'display_order': 1},
                {'product_id': second.id, 'display_order': 0},
            ],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([i['product'] for i in response.data['data']['items']], [second.id, first.id])

    def test_reorder_needs_list(self):
        response = self.client.patch(f'/api/v1/admin/product-sections/{self.section.id}/reorder/',
                                     {'product_orders': 'first'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'product_orders must be a list')

    def test_public_sections_show_active_products_only(self):
        shown, _ = TestDataFactory.create_product_with_variant(price='250.00')
        hidden, _ = TestDataFactory.create_product_with_variant(is_active=False)
        ProductSectionItem.objects.create(section=self.section, product=shown, display_order=0)
        ProductSectionItem.objects.create(section=self.section, product=hidden, display_order=1)
        ProductSection.objects.create(name='Archived', is_active=False)

        self.client.logout()
        response = self.client.get('/api/v1/public/product-sections/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s['slug'] for s in response.data['data']], [self.section.slug])
        products = response.data['data'][0]['products']
        self.assertEqual([p['id'] for p in products], [shown.id])
        self.assertEqual(Decimal(str(products[0]['price'])), Decimal('250.00'))

    def test_sections_need_products_permission(self):
        self.client.authenticate_user(TestDataFactory.create_admin(permissions=['orders:read']))
        response = self.client.get('/api/v1/admin/product-sections/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class AttributeTests(TestCase):
    """Managed variant attributes and their values"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.color = Attribute.objects.create(name='Color', input_type=Attribute.INPUT_SELECT)
        self.red = AttributeValue.objects.create(attribute=self.color, value='Red', hex_code='#FF0000')

    def test_create_attribute(self):
        response = self.client.post('/api/v1/admin/attributes/', {'name': 'Size', 'input_type': 'select'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['values'], [])

    def test_attribute_name_unique_ignoring_case(self):
        response = self.client.post('/api/v1/admin/attributes/', {'name': 'color', 'input_type': 'text'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['name'], ['Attribute with this name already exists'])

    def test_input_type_validated(self):
        response = self.client.post('/api/v1/admin/attributes/', {'name': 'Finish', 'input_type': 'colour'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('input_type', response.data['errors'])

    def test_add_value(self):
        response = self.client.post(f'/api/v1/admin/attributes/{self.color.id}/values/',
                                    {'value': 'Blue', 'hex_code': '#0000FF'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['attribute'], self.color.id)

    def test_duplicate_value_rejected(self):
        response = self.client.post(f'/api/v1/admin/attributes/{self.color.id}/values/', {'value': 'red'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['value'], ['This value already exists for this attribute'])

    def test_value_required(self):
        response = self.client.post(f'/api/v1/admin/attributes/{self.color.id}/values/', {'value': ''},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['value'], ['Value is required'])

    def test_variant_assignment_syncs_attributes(self):
        product = TestDataFactory.create_product()
        response = self.client.post(f'/api/v1/admin/products/{product.id}/variants/', {
            'name': 'Red', 'price': '100.00', 'quantity': 5, 'attribute_value_ids': [self.red.id],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        variant = ProductVariant.objects.get(pk=response.data['data']['id'])
        self.assertEqual(variant.attributes, {'Color': 'Red'})
        self.assertEqual([v['value'] for v in response.data['data']['attribute_values']], ['Red'])

    def test_one_value_per_single_select_attribute(self):
        blue = AttributeValue.objects.create(attribute=self.color, value='Blue')
        product = TestDataFactory.create_product()
        response = self.client.post(f'/api/v1/admin/products/{product.id}/variants/', {
            'name': 'Mixed', 'price': '100.00', 'quantity': 5, 'attribute_value_ids': [self.red.id, blue.id],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_value_in_use_cannot_be_deleted(self):
        _, variant = TestDataFactory.create_product_with_variant()
        variant.attribute_values.add(self.red)

        response = self.client.delete(f'/api/v1/admin/attribute-values/{self.red.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'],
                         'Cannot delete attribute value. It is being used by product variants.')

        response = self.client.delete(f'/api/v1/admin/attributes/{self.color.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Attribute.objects.filter(pk=self.color.pk).exists())

    def test_unused_attribute_deleted_with_values(self):
        response = self.client.delete(f'/api/v1/admin/attributes/{self.color.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(AttributeValue.objects.filter(pk=self.red.pk).exists())
