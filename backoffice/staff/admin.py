from django.contrib import admin
from .models import Employee, DailyAssignment


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ['employee_id', 'name', 'phone_number', 'team', 'status']
    list_filter = ['team', 'status']
    search_fields = ['employee_id', 'name', 'phone_number']


@admin.register(DailyAssignment)
class DailyAssignmentAdmin(admin.ModelAdmin):
    list_display = ['branch', 'date', 'cashier', 'manager']
    list_filter = ['branch', 'date']
