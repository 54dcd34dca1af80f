"""
Django management command to test cache configuration.

Usage:
    python manage.py check_cache
"""
from django.core.management.base import BaseCommand
from django.core.cache import cache
from django.conf import settings

from dfixkart.core.cache_utils import make_cache_key, invalidate_cache_pattern


class Command(BaseCommand):
    help = 'Test cache configuration and verify it is working'

    def handle(self, *args, **options):
        self.stdout.write("=" * 60)
        self.stdout.write(self.style.SUCCESS("Cache Configuration Test"))
        self.stdout.write("=" * 60)

        self.stdout.write(f"\n1. Cache Backend: {settings.CACHES['default']['BACKEND']}")
        self.stdout.write(f"2. Cache Location: {settings.CACHES['default'].get('LOCATION', 'N/A')}")

        self.stdout.write("\n3. Testing Cache Operations:")
        self.stdout.write("-" * 60)

        try:
            cache.set('check_cache_key', 'check_value', 60)
            self.stdout.write(self.style.SUCCESS("✅ Cache SET: Success"))

            value = cache.get('check_cache_key')
            if value == 'check_value':
                self.stdout.write(self.style.SUCCESS("✅ Cache GET: Success (value matches)"))
            else:
                self.stdout.write(self.style.ERROR(f"❌ Cache GET: Failed (got: {value})"))

            cache.delete('check_cache_key')
            if cache.get('check_cache_key') is None:
                self.stdout.write(self.style.SUCCESS("✅ Cache DELETE: Success"))
            else:
                self.stdout.write(self.style.ERROR("❌ Cache DELETE: Failed"))

            self.stdout.write("\n4. Testing Pattern Invalidation:")
            self.stdout.write("-" * 60)
            key = make_cache_key('products_list', page=1, limit=10)
            cache.set(key, {'products': []}, 60)
            invalidate_cache_pattern('products_list')
            if cache.get(key) is None:
                self.stdout.write(self.style.SUCCESS("✅ Pattern invalidation: Success"))
            else:
                self.stdout.write(self.style.ERROR("❌ Pattern invalidation: key still cached"))
        except Exception as e:
            self.stdout.write(self.style.ERROR(f"❌ Cache test failed: {e}"))
            self.stdout.write("   Check that REDIS_URL points at a reachable Redis and django-redis is installed")
            return

        self.stdout.write(self.style.SUCCESS("\nAll cache checks passed"))
