from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q


def default_low_stock_threshold():
    return settings.BACKOFFICE['LOW_STOCK_THRESHOLD']


class Inventory(models.Model):
    """Stock of one product at one location. A NULL branch is the central factory."""
    product = models.ForeignKey('catalog.Product', on_delete=models.CASCADE, related_name='inventory_records')
    branch = models.ForeignKey('locations.Branch', on_delete=models.CASCADE, null=True, blank=True, related_name='inventory_records')
    in_stock = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    low_stock_threshold = models.DecimalField(max_digits=12, decimal_places=3, default=default_low_stock_threshold)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        location = self.branch.name if self.branch_id else 'Factory'
        return f"{self.product.name} @ {location}: {self.in_stock}"

    @property
    def is_low_stock(self):
        return self.in_stock <= self.low_stock_threshold

    class Meta:
        db_table = 'inventory'
        verbose_name_plural = 'inventory'
        ordering = ['product__name']
        constraints = [
            models.UniqueConstraint(fields=['product', 'branch'], name='uniq_inventory_product_branch'),
            models.UniqueConstraint(fields=['product'], condition=Q(branch__isnull=True), name='uniq_inventory_product_factory'),
        ]


class StockHistory(models.Model):
    inventory = models.ForeignKey(Inventory, on_delete=models.CASCADE, related_name='history')
    date = models.DateTimeField(auto_now_add=True)
    change = models.DecimalField(max_digits=12, decimal_places=3)
    reason = models.CharField(max_length=255, blank=True)

    def __str__(self):
        return f"{self.change:+} ({self.reason})"

    class Meta:
        db_table = 'inventory_stock_history'
        ordering = ['-date', '-id']
        verbose_name_plural = 'stock history'
