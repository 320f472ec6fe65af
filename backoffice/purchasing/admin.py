from django.contrib import admin
from .models import DealerBill, BillPayment


class BillPaymentInline(admin.TabularInline):
    model = BillPayment
    extra = 0
    readonly_fields = ['created_at']


@admin.register(DealerBill)
class DealerBillAdmin(admin.ModelAdmin):
    list_display = ['bill_number', 'dealer', 'company', 'branch', 'bill_date', 'amount', 'paid', 'pending', 'status']
    list_filter = ['status', 'branch', 'company']
    search_fields = ['bill_number', 'dealer__dealer_name']
    date_hierarchy = 'bill_date'
    inlines = [BillPaymentInline]
