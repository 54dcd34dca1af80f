from django.contrib.auth.models import AbstractUser
from django.db import models


class Role(models.Model):
    """Admin role holding `resource:action` permission strings"""
    SUPER_ADMIN = 'SUPER_ADMIN'
    ADMIN = 'ADMIN'

    name = models.CharField(max_length=50, unique=True)
    description = models.TextField(blank=True)
    permissions = models.JSONField(default=list, blank=True)  # e.g. ["orders:read", "orders:update"]
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def grants(self, resource, action):
        if self.name == self.SUPER_ADMIN:
            return True
        perms = self.permissions or []
        return f"{resource}:{action}" in perms or f"{resource}:*" in perms

    class Meta:
        db_table = 'roles'
        ordering = ['name']


class User(AbstractUser):
    """Extended user model with additional fields"""
    phone = models.CharField(max_length=20, blank=True, null=True)
    role = models.ForeignKey(Role, on_delete=models.SET_NULL, null=True, blank=True, related_name='users')
    referral_code = models.CharField(max_length=20, unique=True, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_admin_account(self):
        return self.is_superuser or self.role_id is not None

    def has_admin_permission(self, resource, action):
        """Superusers and SUPER_ADMIN role holders pass every check"""
        if self.is_superuser:
            return True
        if not self.role_id:
            return False
        return self.role.grants(resource, action)

    class Meta:
        db_table = 'users'


class Setting(models.Model):
    """System settings"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'settings'


class AuditLog(models.Model):
    """Audit log for admin operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('stock_adjust', 'Stock Adjustment'),
        ('price_change', 'Price Change'),
        ('order_status', 'Order Status Change'),
        ('order_cancel', 'Order Cancelled'),
        ('return_status', 'Return Status Change'),
        ('review_status', 'Review Moderation'),
        ('referral_status', 'Referral Status Change'),
        ('flash_sale_toggle', 'Flash Sale Toggled'),
        ('settings_update', 'Settings Updated'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., product name, order number)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., order number, SKU)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='idx_audit_created'),
            models.Index(fields=['action'], name='idx_audit_action'),
            models.Index(fields=['model_name'], name='idx_audit_model'),
            models.Index(fields=['object_reference'], name='idx_audit_reference'),
        ]
