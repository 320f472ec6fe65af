from django.urls import path
from .views import (
    table_category_list_create, table_category_detail, table_update,
    order_list_create, order_detail, order_receipt,
    kot_order_list_create, kot_order_detail, kot_order_print,
)

urlpatterns = [
    # Tables
    path('table-categories/', table_category_list_create, name='table-category-list-create'),
    path('table-categories/<int:pk>/', table_category_detail, name='table-category-detail'),
    path('tables/<int:pk>/', table_update, name='table-update'),
    # Orders
    path('orders/', order_list_create, name='order-list-create'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('orders/<int:pk>/receipt/', order_receipt, name='order-receipt'),
    # Cake orders
    path('kot-orders/', kot_order_list_create, name='kot-order-list-create'),
    path('kot-orders/<str:form_number>/', kot_order_detail, name='kot-order-detail'),
    path('kot-orders/<str:form_number>/print/', kot_order_print, name='kot-order-print'),
]
