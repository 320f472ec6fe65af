from django.contrib import admin
from .models import TableCategory, Table, Order, OrderItem, BillCounter, KotOrder


@admin.register(TableCategory)
class TableCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'branch', 'table_count', 'created_at']
    list_filter = ['branch']


@admin.register(Table)
class TableAdmin(admin.ModelAdmin):
    list_display = ['table_number', 'category', 'branch', 'status', 'current_order']
    list_filter = ['branch', 'status']


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['bill_no', 'branch', 'tab', 'status', 'payment_method', 'total_with_gst', 'waiter', 'created_at']
    list_filter = ['tab', 'status', 'branch', 'payment_method']
    search_fields = ['bill_no', 'order_id']
    date_hierarchy = 'created_at'
    inlines = [OrderItemInline]


@admin.register(BillCounter)
class BillCounterAdmin(admin.ModelAdmin):
    list_display = ['branch', 'date', 'count']
    list_filter = ['branch']


@admin.register(KotOrder)
class KotOrderAdmin(admin.ModelAdmin):
    list_display = ['form_number', 'customer_name', 'customer_number', 'branch', 'delivery_date', 'amount', 'advance', 'balance']
    list_filter = ['branch', 'delivery_type']
    search_fields = ['form_number', 'customer_name', 'customer_number']
