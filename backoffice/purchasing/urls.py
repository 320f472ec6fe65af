from django.urls import path
from .views import bill_list_create, bill_detail, bill_payments

urlpatterns = [
    path('dealers/bills/', bill_list_create, name='dealer-bill-list-create'),
    path('dealers/bills/<int:pk>/', bill_detail, name='dealer-bill-detail'),
    path('dealers/bills/<int:pk>/payments/', bill_payments, name='dealer-bill-payments'),
]
