from rest_framework import serializers
from .models import Inventory, StockHistory


class StockHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = StockHistory
        fields = ['id', 'date', 'change', 'reason']


class InventorySerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_code = serializers.CharField(source='product.product_code', read_only=True)
    product_type = serializers.CharField(source='product.product_type', read_only=True)
    is_veg = serializers.BooleanField(source='product.is_veg', read_only=True)
    category_name = serializers.CharField(source='product.category.name', read_only=True)
    location_name = serializers.SerializerMethodField()
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Inventory
        fields = ['id', 'product', 'product_name', 'product_code', 'product_type', 'is_veg', 'category_name',
                  'branch', 'location_name', 'in_stock', 'low_stock_threshold', 'is_low_stock', 'updated_at']

    def get_location_name(self, obj):
        return obj.branch.name if obj.branch_id else 'Factory'
