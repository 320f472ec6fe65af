import django_filters
from django.db.models import Q

from .models import Product


class ProductFilter(django_filters.FilterSet):
    """Product list filters used by the product and billing screens"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.NumberFilter(field_name='category_id', lookup_expr='exact')
    product_type = django_filters.ChoiceFilter(choices=Product.PRODUCT_TYPE_CHOICES)
    available = django_filters.BooleanFilter(field_name='available')
    company = django_filters.NumberFilter(field_name='company_id', lookup_expr='exact')
    dealer = django_filters.NumberFilter(method='filter_dealer', label='Dealer ID')

    class Meta:
        model = Product
        fields = ['search', 'category', 'product_type', 'available', 'company', 'dealer']

    def filter_search(self, queryset, name, value):
        """Match name, product code or UPC; every word of a multi-word query must appear in the name"""
        value = value.strip()
        if not value:
            return queryset
        words_query = Q()
        for word in value.split():
            words_query &= Q(name__icontains=word)
        return queryset.filter(
            Q(name__icontains=value) |
            words_query |
            Q(product_code=value) |
            Q(upc=value)
        )

    def filter_dealer(self, queryset, name, value):
        return queryset.filter(dealers__id=value).distinct()
