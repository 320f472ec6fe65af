from django.urls import path
from .views import (
    employee_list_create, employee_detail, employee_toggle_status,
    assignment_today, assignment_save, assignment_by_date,
)

urlpatterns = [
    path('employees/', employee_list_create, name='employee-list-create'),
    path('employees/<int:pk>/', employee_detail, name='employee-detail'),
    path('employees/<int:pk>/status/', employee_toggle_status, name='employee-toggle-status'),
    path('daily-assignments/<int:branch_id>/', assignment_save, name='daily-assignment-save'),
    path('daily-assignments/<int:branch_id>/today/', assignment_today, name='daily-assignment-today'),
    path('daily-assignments/<int:branch_id>/by-date/<str:date>/', assignment_by_date, name='daily-assignment-by-date'),
]
