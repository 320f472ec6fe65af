from django.contrib import admin
from .models import Company, Dealer, DealerCategory, DealerProduct, StockEntry


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at']
    search_fields = ['name']
    ordering = ['name']


@admin.register(Dealer)
class DealerAdmin(admin.ModelAdmin):
    list_display = ['dealer_name', 'phone_no', 'gst', 'pan', 'created_at']
    search_fields = ['dealer_name', 'phone_no', 'gst']
    ordering = ['dealer_name']


@admin.register(DealerCategory)
class DealerCategoryAdmin(admin.ModelAdmin):
    list_display = ['category_name', 'parent_category', 'created_at']
    search_fields = ['category_name']


@admin.register(DealerProduct)
class DealerProductAdmin(admin.ModelAdmin):
    list_display = ['product_name', 'category', 'barcode_no', 'price', 'stock_quantity']
    list_filter = ['category']
    search_fields = ['product_name', 'barcode_no']


@admin.register(StockEntry)
class StockEntryAdmin(admin.ModelAdmin):
    list_display = ['product', 'dealer', 'pcs_count', 'amount', 'created_at']
    list_filter = ['dealer', 'created_at']
    ordering = ['-created_at']
