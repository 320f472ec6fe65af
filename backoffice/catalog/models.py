from decimal import Decimal

from django.db import models


class Department(models.Model):
    """Kitchen or counter sections (Bakery, Cakes, Snacks...) that group categories"""
    name = models.CharField(max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'departments'
        ordering = ['name']


class Category(models.Model):
    name = models.CharField(max_length=200, unique=True)
    parent = models.ForeignKey('self', on_delete=models.PROTECT, null=True, blank=True, related_name='children')
    departments = models.ManyToManyField(Department, blank=True, related_name='categories')
    image = models.ImageField(upload_to='categories/', null=True, blank=True)
    is_pastry_product = models.BooleanField(default=False)
    is_cake = models.BooleanField(default=False)
    is_billing = models.BooleanField(default=False, help_text="Shown on the billing screen")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        ordering = ['name']
        verbose_name_plural = 'categories'


class Album(models.Model):
    """Cake design albums shown to customers when ordering custom cakes"""
    name = models.CharField(max_length=200, unique=True)
    enabled = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'albums'
        ordering = ['name']


class Product(models.Model):
    PRODUCT_TYPE_CHOICES = [
        ('cake', 'Cake'),
        ('non-cake', 'Non-cake'),
    ]

    product_code = models.CharField(max_length=5, unique=True, editable=False, help_text="Zero-padded sequence, e.g. 00001")
    upc = models.CharField(max_length=13, unique=True, editable=False, help_text="EAN-13 derived from the product code")
    name = models.CharField(max_length=255, unique=True)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='products')
    dealers = models.ManyToManyField('parties.Dealer', related_name='products')
    company = models.ForeignKey('parties.Company', on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    is_veg = models.BooleanField(default=True)
    is_pastry = models.BooleanField(default=False)
    product_type = models.CharField(max_length=10, choices=PRODUCT_TYPE_CHOICES, default='non-cake')
    album = models.ForeignKey(Album, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    description = models.TextField(blank=True)
    food_notes = models.TextField(blank=True)
    ingredients = models.TextField(blank=True)
    available = models.BooleanField(default=True)
    images = models.JSONField(default=list, blank=True, help_text="Stored image paths relative to MEDIA_ROOT")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def is_cake(self):
        return self.product_type == 'cake'

    class Meta:
        db_table = 'products'
        ordering = ['product_code']


class PriceDetail(models.Model):
    """One sellable size of a product (e.g. 500 g, 1 kg, 6 pcs) with its tax rate"""
    UNIT_CHOICES = [
        ('kg', 'Kilogram'),
        ('g', 'Gram'),
        ('pcs', 'Pieces'),
    ]
    CAKE_TYPE_CHOICES = [
        ('freshCream', 'Fresh Cream'),
        ('butterCream', 'Butter Cream'),
    ]
    GST_CHOICES = [(0, '0%'), (5, '5%'), (12, '12%'), (18, '18%'), (22, '22%')]

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='price_details')
    position = models.PositiveIntegerField(default=0)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    rate = models.DecimalField(max_digits=10, decimal_places=2)
    offer_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    quantity = models.DecimalField(max_digits=10, decimal_places=3, default=Decimal('1'))
    unit = models.CharField(max_length=5, choices=UNIT_CHOICES)
    cake_type = models.CharField(max_length=20, choices=CAKE_TYPE_CHOICES, null=True, blank=True)
    gst = models.PositiveSmallIntegerField(choices=GST_CHOICES, default=0)

    def __str__(self):
        return f"{self.product.name} {self.quantity}{self.unit}"

    class Meta:
        db_table = 'product_price_details'
        ordering = ['product', 'position']
