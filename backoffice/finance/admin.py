from django.contrib import admin
from .models import Account, BranchSettlement, Transaction, ClosingEntry, ExpenseDetail


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ['name', 'kind', 'branch', 'balance', 'is_active']
    list_filter = ['kind', 'is_active']
    readonly_fields = ['balance']


@admin.register(BranchSettlement)
class BranchSettlementAdmin(admin.ModelAdmin):
    list_display = ['branch', 'upi_account', 'card_account', 'updated_at']


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['date', 'type', 'account', 'branch', 'amount', 'expense_category', 'remarks']
    list_filter = ['type', 'account', 'branch']
    search_fields = ['remarks', 'expense_category']
    date_hierarchy = 'date'


class ExpenseDetailInline(admin.TabularInline):
    model = ExpenseDetail
    extra = 0


@admin.register(ClosingEntry)
class ClosingEntryAdmin(admin.ModelAdmin):
    list_display = ['branch', 'date', 'system_sales', 'billing_total', 'expenses', 'net_result', 'cash_payment', 'created_at']
    list_filter = ['branch']
    date_hierarchy = 'date'
    inlines = [ExpenseDetailInline]
