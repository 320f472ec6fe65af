from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Back-office account. Branch accounts are tied to a single outlet."""
    ROLE_SUPERADMIN = 'superadmin'
    ROLE_ADMIN = 'admin'
    ROLE_BRANCH = 'branch'
    ROLE_ACCOUNTS = 'accounts'
    ROLE_DELIVERYBOY = 'deliveryboy'

    ROLE_CHOICES = [
        (ROLE_SUPERADMIN, 'Super Admin'),
        (ROLE_ADMIN, 'Admin'),
        (ROLE_BRANCH, 'Branch'),
        (ROLE_ACCOUNTS, 'Accounts'),
        (ROLE_DELIVERYBOY, 'Delivery Boy'),
    ]

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_BRANCH)
    branch = models.ForeignKey('locations.Branch', on_delete=models.SET_NULL, null=True, blank=True, related_name='users')
    phone = models.CharField(max_length=20, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def display_name(self):
        return self.get_full_name() or self.username

    @property
    def is_superadmin(self):
        return self.role == self.ROLE_SUPERADMIN

    @property
    def is_admin_role(self):
        return self.role in (self.ROLE_SUPERADMIN, self.ROLE_ADMIN)

    @property
    def can_access_finance(self):
        return self.role in (self.ROLE_SUPERADMIN, self.ROLE_ADMIN, self.ROLE_ACCOUNTS)

    class Meta:
        db_table = 'users'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('order_create', 'Order Created'),
        ('order_status', 'Order Status Changed'),
        ('stock_produce', 'Stock Produced'),
        ('stock_adjust', 'Stock Adjustment'),
        ('stock_transfer', 'Stock Transferred'),
        ('stock_sale', 'Stock Removed (Sale)'),
        ('finance_deposit', 'Finance Deposit'),
        ('finance_expense', 'Finance Expense'),
        ('closing_create', 'Closing Entry Created'),
        ('closing_update', 'Closing Entry Updated'),
        ('bill_create', 'Dealer Bill Created'),
        ('bill_update', 'Dealer Bill Updated'),
        ('payment_add', 'Payment Added'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., product name, bill number)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., bill number, form number)")
    barcode = models.CharField(max_length=100, blank=True, null=True, help_text="UPC if applicable")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_d2c4f1_idx'),
            models.Index(fields=['action'], name='audit_logs_action_5e7a13_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_9b3c20_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_object__41d8e6_idx'),
        ]
