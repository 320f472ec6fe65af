from django.urls import path

from . import views

urlpatterns = [
    path('reports/timing/', views.timing_report, name='report-timing'),
    path('reports/waiter-bills/', views.waiter_bills_report, name='report-waiter-bills'),
    path('reports/billing-summary/', views.billing_summary_report, name='report-billing-summary'),
    path('reports/closing-summary/', views.closing_summary_report, name='report-closing-summary'),
    path('reports/finance-summary/', views.finance_summary_report, name='report-finance-summary'),
    path('reports/dealer-accounts/', views.dealer_accounts_report, name='report-dealer-accounts'),
    path('reports/sales-summary/', views.sales_summary_report, name='report-sales-summary'),
]
