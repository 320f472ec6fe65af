from django.urls import path
from .views import (
    balances, account_list_create, branch_settlement, transaction_list,
    record_deposit, record_expense, closing_entry_list_create, closing_entry_detail,
)

urlpatterns = [
    path('financial/balances/', balances, name='financial-balances'),
    path('financial/accounts/', account_list_create, name='financial-accounts'),
    path('financial/settlements/<int:branch_id>/', branch_settlement, name='financial-settlement'),
    path('financial/transactions/', transaction_list, name='financial-transactions'),
    path('financial/deposit/', record_deposit, name='financial-deposit'),
    path('financial/expense/', record_expense, name='financial-expense'),
    path('closing-entries/', closing_entry_list_create, name='closing-entry-list-create'),
    path('closing-entries/<int:pk>/', closing_entry_detail, name='closing-entry-detail'),
]
