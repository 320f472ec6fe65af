import os
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

ALLOWED_BILL_EXTENSIONS = ('.jpeg', '.jpg', '.png', '.pdf')


def validate_bill_file(upload):
    """Scanned bills: jpeg/jpg/png images or PDF, capped in size"""
    extension = os.path.splitext(upload.name or '')[1].lower()
    if extension not in ALLOWED_BILL_EXTENSIONS:
        raise ValidationError('Only images (jpeg, jpg, png) and PDF files are allowed')
    max_bytes = settings.BACKOFFICE['BILL_IMAGE_MAX_BYTES']
    if upload.size > max_bytes:
        raise ValidationError(f'Bill image must be {max_bytes // (1024 * 1024)} MB or smaller')


class DealerBill(models.Model):
    """A supplier invoice with its payment progress"""
    STATUS_CHOICES = [
        ('Pending', 'Pending'),
        ('Completed', 'Completed'),
    ]

    company = models.ForeignKey('parties.Company', on_delete=models.PROTECT, related_name='dealer_bills')
    dealer = models.ForeignKey('parties.Dealer', on_delete=models.PROTECT, related_name='bills')
    branch = models.ForeignKey('locations.Branch', on_delete=models.PROTECT, related_name='dealer_bills')
    product = models.ForeignKey('catalog.Product', on_delete=models.PROTECT, related_name='dealer_bills')
    bill_number = models.CharField(max_length=100, unique=True)
    bill_date = models.DateField()
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    bill_image = models.FileField(upload_to='dealer_bills/', blank=True, null=True, validators=[validate_bill_file])
    paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'), validators=[MinValueValidator(Decimal('0'))])
    pending = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='Pending')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='dealer_bills')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        self.pending = self.amount - self.paid
        self.status = 'Completed' if self.pending == 0 else 'Pending'
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.bill_number} ({self.dealer})"

    class Meta:
        db_table = 'dealer_bills'
        ordering = ['-bill_date', '-created_at']
        indexes = [
            models.Index(fields=['dealer', 'status'], name='idx_dealer_bill_dealer_status'),
            models.Index(fields=['-bill_date'], name='idx_dealer_bill_date'),
        ]


class BillPayment(models.Model):
    bill = models.ForeignKey(DealerBill, on_delete=models.CASCADE, related_name='payments')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    note = models.CharField(max_length=255, blank=True)
    paid_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='bill_payments')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.bill.bill_number}: {self.amount}"

    class Meta:
        db_table = 'dealer_bill_payments'
        ordering = ['-created_at']
