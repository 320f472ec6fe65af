from django.urls import path
from .views import (
    company_list_create,
    dealer_list_create, dealer_detail,
    dealer_category_list_create, dealer_category_detail,
    dealer_product_list_create, dealer_product_detail,
    stock_entry_list_create, stock_entry_detail,
)

urlpatterns = [
    path('companies/', company_list_create, name='company-list-create'),
    path('dealers/', dealer_list_create, name='dealer-list-create'),
    path('dealers/<int:pk>/', dealer_detail, name='dealer-detail'),
    path('dealer/categories/', dealer_category_list_create, name='dealer-category-list-create'),
    path('dealer/categories/<int:pk>/', dealer_category_detail, name='dealer-category-detail'),
    path('dealer/products/', dealer_product_list_create, name='dealer-product-list-create'),
    path('dealer/products/<int:pk>/', dealer_product_detail, name='dealer-product-detail'),
    path('dealer/stock-entries/', stock_entry_list_create, name='stock-entry-list-create'),
    path('dealer/stock-entries/<int:pk>/', stock_entry_detail, name='stock-entry-detail'),
]
