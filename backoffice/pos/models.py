from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class TableCategory(models.Model):
    """A seating area of a branch (Floor, Balcony, AC, ...) holding numbered tables"""
    name = models.CharField(max_length=100)
    branch = models.ForeignKey('locations.Branch', on_delete=models.CASCADE, related_name='table_categories')
    table_count = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.name} ({self.branch})"

    class Meta:
        db_table = 'table_categories'
        unique_together = ['branch', 'name']
        verbose_name_plural = 'table categories'


class Table(models.Model):
    STATUS_CHOICES = [
        ('Free', 'Free'),
        ('Occupied', 'Occupied'),
    ]

    table_number = models.CharField(max_length=120)
    category = models.ForeignKey(TableCategory, on_delete=models.CASCADE, related_name='tables')
    branch = models.ForeignKey('locations.Branch', on_delete=models.CASCADE, related_name='tables')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='Free')
    current_order = models.ForeignKey('Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.table_number

    @property
    def sequence(self):
        """The trailing number of ``Floor-3``"""
        try:
            return int(self.table_number.rsplit('-', 1)[1])
        except (IndexError, ValueError):
            return 0

    class Meta:
        db_table = 'tables'
        ordering = ['category', 'id']


class Order(models.Model):
    """A bill, a stock request to the factory, or a live order"""
    TAB_STOCK = 'stock'
    TAB_LIVE = 'liveOrder'
    TAB_TABLE = 'tableOrder'
    TAB_BILLING = 'billing'

    TAB_CHOICES = [
        (TAB_STOCK, 'Stock Order'),
        (TAB_LIVE, 'Live Order'),
        (TAB_TABLE, 'Table Order'),
        (TAB_BILLING, 'Billing'),
    ]

    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('completed', 'Completed'),
        ('neworder', 'New Order'),
        ('pending', 'Pending'),
        ('delivered', 'Delivered'),
        ('received', 'Received'),
    ]

    order_id = models.CharField(max_length=40, unique=True)
    bill_no = models.CharField(max_length=30, unique=True)
    branch = models.ForeignKey('locations.Branch', on_delete=models.PROTECT, related_name='orders')
    tab = models.CharField(max_length=20, choices=TAB_CHOICES)
    payment_method = models.CharField(max_length=50)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    total_gst = models.DecimalField(max_digits=12, decimal_places=2)
    total_with_gst = models.DecimalField(max_digits=12, decimal_places=2)
    total_items = models.PositiveIntegerField()
    waiter = models.ForeignKey('staff.Employee', on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    delivery_datetime = models.DateTimeField(null=True, blank=True)
    table = models.ForeignKey(Table, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    received_at = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return self.bill_no

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['branch', 'tab', 'created_at'], name='orders_branch_tab_created_idx'),
        ]


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    position = models.PositiveIntegerField(default=0)
    product = models.ForeignKey('catalog.Product', on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items')
    name = models.CharField(max_length=255)
    quantity = models.DecimalField(max_digits=10, decimal_places=3)
    sending_qty = models.DecimalField(max_digits=10, decimal_places=3, default=Decimal('0'))
    price = models.DecimalField(max_digits=10, decimal_places=2)
    unit = models.CharField(max_length=20)
    gst_rate = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True, help_text="NULL for non-GST items")
    is_non_gst = models.BooleanField(default=False)
    product_total = models.DecimalField(max_digits=12, decimal_places=2)
    product_gst = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    bminstock = models.DecimalField(max_digits=10, decimal_places=3, default=Decimal('0'))
    confirmed = models.BooleanField(default=False)

    def __str__(self):
        return f"{self.name} x {self.quantity}"

    class Meta:
        db_table = 'order_items'
        ordering = ['position', 'id']


class BillCounter(models.Model):
    """Running bill count of a branch for one local day"""
    branch = models.ForeignKey('locations.Branch', on_delete=models.CASCADE, related_name='bill_counters')
    date = models.DateField()
    count = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'bill_counters'
        unique_together = ['branch', 'date']


class KotOrder(models.Model):
    """Custom cake order form taken at the counter"""
    DELIVERY_TYPE_CHOICES = [
        ('In-Store Pickup', 'In-Store Pickup'),
        ('Door Delivery', 'Door Delivery'),
    ]

    form_number = models.CharField(max_length=10, unique=True)
    date = models.DateTimeField(default=timezone.now)
    order_time = models.CharField(max_length=5)
    delivery_date = models.DateField()
    delivery_time = models.CharField(max_length=20)
    delivery_type = models.CharField(max_length=20, choices=DELIVERY_TYPE_CHOICES)
    customer_name = models.CharField(max_length=200)
    customer_number = models.CharField(max_length=20)
    address = models.TextField()
    email = models.EmailField()
    birthday_date = models.DateField(null=True, blank=True)
    cake_model = models.CharField(max_length=200)
    weight = models.DecimalField(max_digits=8, decimal_places=3)
    flavour = models.CharField(max_length=100)
    type = models.CharField(max_length=100)
    alteration = models.TextField(blank=True)
    special_care = models.TextField(blank=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    advance = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    balance = models.DecimalField(max_digits=10, decimal_places=2)
    branch = models.ForeignKey('locations.Branch', on_delete=models.PROTECT, related_name='kot_orders')
    sales_man = models.CharField(max_length=200)
    created_at = models.DateTimeField(auto_now_add=True)

    def save(self, *args, **kwargs):
        self.balance = self.amount - self.advance
        super().save(*args, **kwargs)

    def __str__(self):
        return f"KOT {self.form_number} - {self.customer_name}"

    class Meta:
        db_table = 'kot_orders'
        ordering = ['-created_at']
