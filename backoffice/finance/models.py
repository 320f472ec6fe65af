from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

NON_NEGATIVE = [MinValueValidator(Decimal('0'))]


class Account(models.Model):
    """A ledger source: a bank account or a cash drawer"""
    KIND_CHOICES = [
        ('bank', 'Bank'),
        ('cash', 'Cash'),
    ]

    name = models.CharField(max_length=100, unique=True)
    kind = models.CharField(max_length=10, choices=KIND_CHOICES)
    branch = models.ForeignKey('locations.Branch', on_delete=models.PROTECT, null=True, blank=True,
                               related_name='cash_accounts', help_text="Set for a branch's own cash drawer")
    balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0'))
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'finance_accounts'
        ordering = ['kind', 'name']


class BranchSettlement(models.Model):
    """Bank accounts that receive a branch's UPI and card takings"""
    branch = models.OneToOneField('locations.Branch', on_delete=models.CASCADE, related_name='settlement')
    upi_account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name='upi_settlements')
    card_account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name='card_settlements')
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.branch}: UPI->{self.upi_account}, Card->{self.card_account}"

    class Meta:
        db_table = 'finance_branch_settlements'


class Transaction(models.Model):
    TYPE_DEPOSIT = 'Credit - Deposit'
    TYPE_EXPENSE = 'Debit - Expense'

    TYPE_CHOICES = [
        (TYPE_DEPOSIT, 'Credit - Deposit'),
        (TYPE_EXPENSE, 'Debit - Expense'),
    ]

    date = models.DateField(default=timezone.localdate)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name='transactions')
    branch = models.ForeignKey('locations.Branch', on_delete=models.PROTECT, related_name='transactions')
    amount = models.DecimalField(max_digits=14, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    expense_category = models.CharField(max_length=100, default='N/A')
    remarks = models.CharField(max_length=255, default='N/A')
    closing_entry = models.ForeignKey('ClosingEntry', on_delete=models.SET_NULL, null=True, blank=True, related_name='transactions')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='transactions')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.type} {self.amount} ({self.account})"

    class Meta:
        db_table = 'finance_transactions'
        ordering = ['-date', '-id']
        indexes = [
            models.Index(fields=['account', 'date'], name='idx_fin_txn_account_date'),
            models.Index(fields=['branch', 'date'], name='idx_fin_txn_branch_date'),
        ]


class ClosingEntry(models.Model):
    """End-of-shift cash-up of a branch"""
    DENOMINATIONS = [2000, 500, 200, 100, 50, 20, 10]

    branch = models.ForeignKey('locations.Branch', on_delete=models.PROTECT, related_name='closing_entries')
    date = models.DateField()
    system_sales = models.DecimalField(max_digits=14, decimal_places=2, validators=NON_NEGATIVE)
    manual_sales = models.DecimalField(max_digits=14, decimal_places=2, validators=NON_NEGATIVE)
    online_sales = models.DecimalField(max_digits=14, decimal_places=2, validators=NON_NEGATIVE)
    billing_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0'))
    expenses = models.DecimalField(max_digits=14, decimal_places=2, validators=NON_NEGATIVE)
    net_result = models.DecimalField(max_digits=14, decimal_places=2)
    credit_card_payment = models.DecimalField(max_digits=14, decimal_places=2, validators=NON_NEGATIVE)
    upi_payment = models.DecimalField(max_digits=14, decimal_places=2, validators=NON_NEGATIVE)
    cash_payment = models.DecimalField(max_digits=14, decimal_places=2, validators=NON_NEGATIVE)
    denom_2000 = models.PositiveIntegerField(default=0)
    denom_500 = models.PositiveIntegerField(default=0)
    denom_200 = models.PositiveIntegerField(default=0)
    denom_100 = models.PositiveIntegerField(default=0)
    denom_50 = models.PositiveIntegerField(default=0)
    denom_20 = models.PositiveIntegerField(default=0)
    denom_10 = models.PositiveIntegerField(default=0)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='closing_entries')
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.branch} {self.date}"

    @property
    def denomination_total(self):
        return sum(getattr(self, f'denom_{value}') * value for value in self.DENOMINATIONS)

    class Meta:
        db_table = 'closing_entries'
        ordering = ['-date', '-created_at']
        verbose_name_plural = 'closing entries'


class ExpenseDetail(models.Model):
    closing_entry = models.ForeignKey(ClosingEntry, on_delete=models.CASCADE, related_name='expense_details')
    serial_no = models.PositiveIntegerField()
    reason = models.CharField(max_length=255, blank=True)
    recipient = models.CharField(max_length=255, blank=True)
    amount = models.DecimalField(max_digits=14, decimal_places=2, validators=NON_NEGATIVE)

    class Meta:
        db_table = 'closing_entry_expenses'
        ordering = ['serial_no', 'id']
