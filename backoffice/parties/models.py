from decimal import Decimal

from django.core.validators import RegexValidator, MinValueValidator
from django.db import models

phone_validator = RegexValidator(r'^\d{10}$', 'Phone number must be exactly 10 digits')
company_name_validator = RegexValidator(r'^[A-Za-z\s]+$', 'Company name must contain only letters and spaces')


class Company(models.Model):
    """Brands whose products are sold or bought through dealers"""
    name = models.CharField(max_length=50, unique=True, validators=[company_name_validator])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'companies'
        ordering = ['name']
        verbose_name_plural = 'companies'


class Dealer(models.Model):
    """Suppliers of raw material and bought-in goods"""
    dealer_name = models.CharField(max_length=200)
    address = models.TextField(blank=True)
    phone_no = models.CharField(max_length=10, unique=True, validators=[phone_validator])
    gst = models.CharField(max_length=20, unique=True, blank=True, null=True)
    pan = models.CharField(max_length=20, blank=True)
    msme = models.CharField(max_length=50, blank=True)
    tan = models.CharField(max_length=20, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.dealer_name

    class Meta:
        db_table = 'dealers'
        ordering = ['dealer_name']


class DealerCategory(models.Model):
    category_name = models.CharField(max_length=200, unique=True)
    description = models.TextField(blank=True)
    parent_category = models.ForeignKey('self', on_delete=models.PROTECT, null=True, blank=True, related_name='subcategories')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.category_name

    class Meta:
        db_table = 'dealer_categories'
        ordering = ['category_name']
        verbose_name_plural = 'dealer categories'


class DealerProduct(models.Model):
    product_name = models.CharField(max_length=200)
    category = models.ForeignKey(DealerCategory, on_delete=models.PROTECT, related_name='products')
    barcode_no = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(Decimal('0.00'))])
    stock_quantity = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.product_name

    class Meta:
        db_table = 'dealer_products'
        ordering = ['product_name']
        unique_together = [['category', 'product_name']]


class StockEntry(models.Model):
    """Goods received from a dealer, counted in pieces"""
    dealer = models.ForeignKey(Dealer, on_delete=models.PROTECT, related_name='stock_entries')
    category = models.ForeignKey(DealerCategory, on_delete=models.PROTECT, related_name='stock_entries')
    product = models.ForeignKey(DealerProduct, on_delete=models.PROTECT, related_name='stock_entries')
    pcs_count = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.product_name} x {self.pcs_count}"

    class Meta:
        db_table = 'dealer_stock_entries'
        ordering = ['-created_at']
        verbose_name_plural = 'stock entries'
