"""
Permission classes for admin endpoints.

Admin accounts carry a Role whose permissions are `resource:action` strings.
Use them next to IsAuthenticated so anonymous callers get 401, not 403:

    @permission_classes([IsAuthenticated, require_permission('orders', 'update')])
"""
from rest_framework.permissions import BasePermission


def require_permission(resource, action):
    """Build a permission class that checks one `resource:action` grant"""

    class HasPermission(BasePermission):
        message = 'Insufficient permissions'

        def has_permission(self, request, view):
            user = request.user
            if not user or not user.is_authenticated:
                return False
            return user.has_admin_permission(resource, action)

    HasPermission.__name__ = f"HasPermission_{resource}_{action}"
    return HasPermission


def require_role(*role_names):
    """Build a permission class that accepts the listed role names"""

    class HasRole(BasePermission):
        message = 'Insufficient permissions'

        def has_permission(self, request, view):
            user = request.user
            if not user or not user.is_authenticated:
                return False
            if user.is_superuser:
                return True
            return bool(user.role_id and user.role.name in role_names)

    return HasRole


METHOD_ACTIONS = {
    'GET': 'read',
    'HEAD': 'read',
    'OPTIONS': 'read',
    'POST': 'create',
    'PUT': 'update',
    'PATCH': 'update',
    'DELETE': 'delete',
}


def require_resource_permission(resource):
    """Build a permission class that maps the HTTP method to the action (GET -> read, POST -> create...)"""

    class HasResourcePermission(BasePermission):
        message = 'Insufficient permissions'

        def has_permission(self, request, view):
            user = request.user
            if not user or not user.is_authenticated:
                return False
            action = METHOD_ACTIONS.get(request.method, 'update')
            return user.has_admin_permission(resource, action)

    HasResourcePermission.__name__ = f"HasResourcePermission_{resource}"
    return HasResourcePermission
