from django.contrib import admin
from .models import Department, Category, Album, Product, PriceDetail


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at']
    search_fields = ['name']


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'parent', 'is_pastry_product', 'is_cake', 'is_billing']
    list_filter = ['is_pastry_product', 'is_cake', 'is_billing']
    search_fields = ['name']
    ordering = ['name']


@admin.register(Album)
class AlbumAdmin(admin.ModelAdmin):
    list_display = ['name', 'enabled', 'created_at']
    list_filter = ['enabled']
    search_fields = ['name']


class PriceDetailInline(admin.TabularInline):
    model = PriceDetail
    extra = 0


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['product_code', 'name', 'upc', 'category', 'product_type', 'available', 'created_at']
    list_filter = ['product_type', 'available', 'is_veg', 'category']
    search_fields = ['name', 'product_code', 'upc']
    readonly_fields = ['product_code', 'upc']
    filter_horizontal = ['dealers']
    inlines = [PriceDetailInline]
