from django.urls import path
from .views import (
    department_list_create, department_detail,
    category_list_create, category_detail,
    album_list_create, album_detail, album_toggle_status,
    product_list_create, product_detail, product_barcode, product_lookup,
)

urlpatterns = [
    path('departments/', department_list_create, name='department-list-create'),
    path('departments/<int:pk>/', department_detail, name='department-detail'),
    path('categories/', category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', category_detail, name='category-detail'),
    path('albums/', album_list_create, name='album-list-create'),
    path('albums/<int:pk>/', album_detail, name='album-detail'),
    path('albums/<int:pk>/toggle-status/', album_toggle_status, name='album-toggle-status'),
    path('products/', product_list_create, name='product-list-create'),
    path('products/lookup/', product_lookup, name='product-lookup'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
    path('products/<int:pk>/barcode/', product_barcode, name='product-barcode'),
]
