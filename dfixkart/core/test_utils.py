"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from dfixkart.core.models import Role
from dfixkart.catalog.models import Category, Brand, Product, ProductVariant, PricingSlab, MOQSetting
from dfixkart.pricing.models import FlashSale, FlashSaleProduct, Coupon
from dfixkart.accounts.models import Address
from dfixkart.cart.models import CartItem
from dfixkart.orders.models import Order, OrderItem
from decimal import Decimal
from datetime import timedelta
from django.utils import timezone
import random
import string
import uuid

User = get_user_model()

TEST_PASSWORD = 'Str0ngPassw0rd!'


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password=TEST_PASSWORD, is_staff=False, is_superuser=False):
        """Create a test shopper"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )
        return user

    @staticmethod
    def create_role(name=None, permissions=None):
        """Create an admin role with `resource:action` grants"""
        if not name:
            name = f'ROLE_{TestDataFactory.random_string(6).upper()}'
        return Role.objects.create(name=name, permissions=permissions or [])

    @staticmethod
    def create_admin(permissions=None, username=None):
        """Create an admin account; permissions=None means SUPER_ADMIN"""
        if permissions is None:
            role, _ = Role.objects.get_or_create(name=Role.SUPER_ADMIN)
        else:
            role = TestDataFactory.create_role(permissions=permissions)
        user = TestDataFactory.create_user(username=username or f'admin_{TestDataFactory.random_string(6)}')
        user.role = role
        user.save(update_fields=['role'])
        return user

    @staticmethod
    def create_category(name=None, parent=None, is_active=True):
        """Create a test category"""
        if not name:
            name = f'Category {TestDataFactory.random_string(6)}'
        return Category.objects.create(
            name=name,
            parent=parent,
            description=f'Test category {name}',
            is_active=is_active
        )

    @staticmethod
    def create_brand(name=None):
        """Create a test brand"""
        if not name:
            name = f'Brand {TestDataFactory.random_string(6)}'
        return Brand.objects.create(name=name, description=f'Test brand {name}')

    @staticmethod
    def create_product(name=None, category=None, brand=None, is_active=True, **kwargs):
        """Create a test product"""
        if not name:
            name = f'Product {TestDataFactory.random_string(6)}'
        if category is None:
            category = TestDataFactory.create_category()
        if brand is None:
            brand = TestDataFactory.create_brand()
        return Product.objects.create(
            name=name,
            category=category,
            brand=brand,
            is_active=is_active,
            **kwargs
        )

    @staticmethod
    def create_variant(product=None, price='100.00', sale_price=None, quantity=50, sku=None, is_active=True, **kwargs):
        """Create a test variant"""
        if product is None:
            product = TestDataFactory.create_product()
        if not sku:
            sku = f'SKU-{TestDataFactory.random_string(8).upper()}'
        return ProductVariant.objects.create(
            product=product,
            name=kwargs.pop('name', 'Default'),
            sku=sku,
            price=Decimal(str(price)),
            sale_price=Decimal(str(sale_price)) if sale_price is not None else None,
            quantity=quantity,
            is_active=is_active,
            **kwargs
        )

    @staticmethod
    def create_product_with_variant(price='100.00', sale_price=None, quantity=50, **product_kwargs):
        """Create a product with one variant; returns (product, variant)"""
        product = TestDataFactory.create_product(**product_kwargs)
        variant = TestDataFactory.create_variant(product=product, price=price, sale_price=sale_price, quantity=quantity)
        return product, variant

    @staticmethod
    def create_pricing_slab(variant=None, product=None, min_qty=1, max_qty=None, price='90.00'):
        """Create a quantity slab for a variant or product"""
        return PricingSlab.objects.create(
            variant=variant,
            product=product,
            min_qty=min_qty,
            max_qty=max_qty,
            price=Decimal(str(price))
        )

    @staticmethod
    def create_moq(scope=MOQSetting.SCOPE_GLOBAL, min_qty=1, product=None, variant=None, is_active=True):
        """Create a minimum order quantity rule"""
        return MOQSetting.objects.create(
            scope=scope,
            min_qty=min_qty,
            product=product,
            variant=variant,
            is_active=is_active
        )

    @staticmethod
    def create_flash_sale(products=None, discount='20.00', is_active=True, start_time=None, end_time=None,
                          max_quantity=None, sold_count=0, name=None):
        """Create a flash sale running now unless times are given"""
        now = timezone.now()
        flash_sale = FlashSale.objects.create(
            name=name or f'Flash {TestDataFactory.random_string(6)}',
            start_time=start_time or now - timedelta(hours=1),
            end_time=end_time or now + timedelta(hours=5),
            discount_percentage=Decimal(str(discount)),
            max_quantity=max_quantity,
            sold_count=sold_count,
            is_active=is_active
        )
        for product in products or []:
            FlashSaleProduct.objects.create(flash_sale=flash_sale, product=product)
        return flash_sale

    @staticmethod
    def create_coupon(code=None, discount_type=Coupon.DISCOUNT_PERCENTAGE, discount_value='10.00',
                      min_order_amount='0.00', max_uses=None, used_count=0, is_active=True,
                      start_date=None, end_date=None):
        """Create a test coupon"""
        if not code:
            code = f'SAVE{TestDataFactory.random_string(5).upper()}'
        return Coupon.objects.create(
            code=code,
            discount_type=discount_type,
            discount_value=Decimal(str(discount_value)),
            min_order_amount=Decimal(str(min_order_amount)),
            max_uses=max_uses,
            used_count=used_count,
            is_active=is_active,
            start_date=start_date,
            end_date=end_date
        )

    @staticmethod
    def create_address(user, is_default=True, city='Mumbai'):
        """Create a shipping address"""
        return Address.objects.create(
            user=user,
            full_name='Test Shopper',
            phone='9876543210',
            street='12 Market Road',
            city=city,
            state='Maharashtra',
            postal_code='400001',
            country='India',
            is_default=is_default
        )

    @staticmethod
    def add_to_cart(user, variant, quantity=1):
        """Put a variant in the user's cart"""
        return CartItem.objects.create(user=user, variant=variant, quantity=quantity)

    @staticmethod
    def create_order(user, variant=None, quantity=1, status=Order.STATUS_PENDING, price=None, delivered_at=None):
        """Create an order with one line, bypassing checkout"""
        if variant is None:
            _, variant = TestDataFactory.create_product_with_variant()
        unit_price = Decimal(str(price)) if price is not None else variant.current_price
        subtotal = unit_price * quantity
        order = Order.objects.create(
            order_number=f"ORD-{uuid.uuid4().hex[:12].upper()}",
            user=user,
            status=status,
            sub_total=subtotal,
            total=subtotal,
            delivered_at=delivered_at
        )
        OrderItem.objects.create(
            order=order,
            product=variant.product,
            variant=variant,
            product_name=variant.product.name,
            variant_name=variant.name,
            sku=variant.sku,
            price=unit_price,
            quantity=quantity,
            subtotal=subtotal
        )
        return order


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
