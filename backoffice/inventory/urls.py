from django.urls import path
from .views import (
    inventory_list, produce_stock, update_stock, update_threshold,
    reduce_stock, transfer_stock, stock_history,
)

urlpatterns = [
    path('inventory/', inventory_list, name='inventory-list'),
    path('inventory/produce/', produce_stock, name='inventory-produce'),
    path('inventory/reduce/', reduce_stock, name='inventory-reduce'),
    path('inventory/transfer/', transfer_stock, name='inventory-transfer'),
    path('inventory/<int:pk>/stock/', update_stock, name='inventory-update-stock'),
    path('inventory/<int:pk>/threshold/', update_threshold, name='inventory-update-threshold'),
    path('inventory/<int:pk>/history/', stock_history, name='inventory-history'),
]
