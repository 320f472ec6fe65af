from django.contrib import admin
from .models import Inventory, StockHistory


class StockHistoryInline(admin.TabularInline):
    model = StockHistory
    extra = 0
    readonly_fields = ['date', 'change', 'reason']


@admin.register(Inventory)
class InventoryAdmin(admin.ModelAdmin):
    list_display = ['product', 'branch', 'in_stock', 'low_stock_threshold', 'updated_at']
    list_filter = ['branch']
    search_fields = ['product__name', 'product__product_code']
    inlines = [StockHistoryInline]
