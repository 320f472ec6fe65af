import re

from rest_framework import serializers
from .models import Company, Dealer, DealerCategory, DealerProduct, StockEntry


class CompanySerializer(serializers.ModelSerializer):
    name = serializers.CharField(max_length=50)

    class Meta:
        model = Company
        fields = ['id', 'name', 'created_at', 'updated_at']

    def validate_name(self, value):
        value = value.strip()
        if not re.fullmatch(r'[A-Za-z\s]+', value):
            raise serializers.ValidationError('Company name must contain only letters and spaces')
        queryset = Company.objects.filter(name__iexact=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError('Company already exists')
        return value


class DealerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Dealer
        fields = ['id', 'dealer_name', 'address', 'phone_no', 'gst', 'pan', 'msme', 'tan', 'created_at', 'updated_at']

    def validate_gst(self, value):
        # Blank GST numbers are stored as NULL so several dealers may omit it
        return value.strip() if value and value.strip() else None


class DealerCategorySerializer(serializers.ModelSerializer):
    parent_category_name = serializers.CharField(source='parent_category.category_name', read_only=True, default=None)

    class Meta:
        model = DealerCategory
        fields = ['id', 'category_name', 'description', 'parent_category', 'parent_category_name', 'created_at', 'updated_at']


class DealerProductSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.category_name', read_only=True)

    class Meta:
        model = DealerProduct
        fields = ['id', 'product_name', 'category', 'category_name', 'barcode_no', 'description',
                  'price', 'stock_quantity', 'created_at', 'updated_at']


class StockEntrySerializer(serializers.ModelSerializer):
    dealer_name = serializers.CharField(source='dealer.dealer_name', read_only=True)
    category_name = serializers.CharField(source='category.category_name', read_only=True)
    product_name = serializers.CharField(source='product.product_name', read_only=True)

    class Meta:
        model = StockEntry
        fields = ['id', 'dealer', 'dealer_name', 'category', 'category_name', 'product', 'product_name',
                  'pcs_count', 'amount', 'created_at', 'updated_at']
