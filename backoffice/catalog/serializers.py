from rest_framework import serializers

from backoffice.parties.models import Dealer
from .models import Department, Category, Album, Product, PriceDetail


class DepartmentSerializer(serializers.ModelSerializer):
    name = serializers.CharField(max_length=100)

    class Meta:
        model = Department
        fields = ['id', 'name', 'created_at', 'updated_at']


class CategorySerializer(serializers.ModelSerializer):
    name = serializers.CharField(max_length=200)
    parent_name = serializers.CharField(source='parent.name', read_only=True, default=None)
    department_names = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'name', 'parent', 'parent_name', 'departments', 'department_names', 'image',
                  'is_pastry_product', 'is_cake', 'is_billing', 'created_at', 'updated_at']
        extra_kwargs = {'departments': {'required': False}}

    def get_department_names(self, obj):
        return [department.name for department in obj.departments.all()]


class AlbumSerializer(serializers.ModelSerializer):
    name = serializers.CharField(max_length=200)

    class Meta:
        model = Album
        fields = ['id', 'name', 'enabled', 'created_at', 'updated_at']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Album name is required')
        queryset = Album.objects.filter(name__iexact=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError('Album name already exists! Choose a different name.')
        return value


class PriceDetailSerializer(serializers.ModelSerializer):
    rate = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)

    class Meta:
        model = PriceDetail
        fields = ['id', 'price', 'rate', 'offer_percent', 'quantity', 'unit', 'cake_type', 'gst']
        read_only_fields = ['id']

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError('Price must be non-negative')
        return value


class ProductSerializer(serializers.ModelSerializer):
    dealers = serializers.PrimaryKeyRelatedField(many=True, queryset=Dealer.objects.all(), required=False, allow_empty=True)
    price_details = PriceDetailSerializer(many=True, required=False)
    category_name = serializers.CharField(source='category.name', read_only=True)
    company_name = serializers.CharField(source='company.name', read_only=True, default=None)
    album_name = serializers.CharField(source='album.name', read_only=True, default=None)
    dealer_names = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = ['id', 'product_code', 'upc', 'name', 'category', 'category_name', 'dealers', 'dealer_names',
                  'company', 'company_name', 'is_veg', 'is_pastry', 'product_type', 'album', 'album_name',
                  'description', 'food_notes', 'ingredients', 'available', 'images', 'price_details',
                  'created_at', 'updated_at']
        read_only_fields = ['product_code', 'upc', 'images', 'created_at', 'updated_at']

    def get_dealer_names(self, obj):
        return [dealer.dealer_name for dealer in obj.dealers.all()]

    def validate(self, attrs):
        if self.instance is None or 'dealers' in attrs:
            if not attrs.get('dealers'):
                raise serializers.ValidationError({'dealers': 'At least one dealer is required'})

        product_type = attrs.get('product_type', self.instance.product_type if self.instance else 'non-cake')
        album = attrs.get('album', self.instance.album if self.instance else None)
        if product_type == 'cake' and album is None:
            raise serializers.ValidationError({'album': 'Album is required for cake products'})
        return attrs
