from django.core.management.base import BaseCommand
from dfixkart.core.models import Role

CRUD = ['create', 'read', 'update', 'delete']


def _grants(*resources, actions=CRUD):
    return [f'{resource}:{action}' for resource in resources for action in actions]


class Command(BaseCommand):
    help = 'Create admin roles for RBAC: SUPER_ADMIN, ADMIN, MANAGER, CONTENT_EDITOR'

    def add_arguments(self, parser):
        parser.add_argument(
            '--reset',
            action='store_true',
            help='Overwrite the permissions of roles that already exist',
        )

    def handle(self, *args, **options):
        roles_config = [
            {
                'name': Role.SUPER_ADMIN,
                'description': 'Full access, bypasses every permission check',
                'permissions': [],
            },
            {
                'name': Role.ADMIN,
                'description': 'Store administrators - everything except role management',
                'permissions': _grants(
                    'products', 'categories', 'inventory', 'orders', 'users', 'reviews',
                    'returns', 'flash_sales', 'coupons', 'referrals', 'content', 'settings',
                ),
            },
            {
                'name': 'MANAGER',
                'description': 'Order and stock handling',
                'permissions': (
                    _grants('orders', 'inventory', 'returns', 'reviews')
                    + _grants('products', 'categories', 'flash_sales', 'coupons', 'referrals', actions=['read'])
                ),
            },
            {
                'name': 'CONTENT_EDITOR',
                'description': 'Blog, FAQ and banner editing',
                'permissions': _grants('content') + _grants('products', 'categories', actions=['read']),
            },
        ]

        created_count = 0
        updated_count = 0

        for role_config in roles_config:
            role, created = Role.objects.get_or_create(
                name=role_config['name'],
                defaults={
                    'description': role_config['description'],
                    'permissions': role_config['permissions'],
                }
            )

            if created:
                self.stdout.write(self.style.SUCCESS(f'✓ Created role: {role.name}'))
                created_count += 1
            elif options['reset']:
                role.description = role_config['description']
                role.permissions = role_config['permissions']
                role.save()
                self.stdout.write(f'  Reset permissions for role: {role.name}')
                updated_count += 1
            else:
                self.stdout.write(f'  Role already exists: {role.name}')

        self.stdout.write(self.style.SUCCESS(
            f'\nCompleted: {created_count} roles created, {updated_count} roles reset'
        ))
