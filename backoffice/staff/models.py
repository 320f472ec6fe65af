import re

from django.core.validators import RegexValidator
from django.db import models

phone_validator = RegexValidator(r'^\d{10}$', 'Phone number must be exactly 10 digits')


def next_employee_id():
    """E001, E002, ... continuing from the highest number issued so far"""
    highest = 0
    for employee_id in Employee.objects.values_list('employee_id', flat=True):
        match = re.match(r'^E(\d+)$', employee_id or '')
        if match:
            highest = max(highest, int(match.group(1)))
    return f"E{highest + 1:03d}"


class Employee(models.Model):
    TEAM_CHOICES = [
        ('Waiter', 'Waiter'),
        ('Chef', 'Chef'),
        ('Cashier', 'Cashier'),
        ('Manager', 'Manager'),
    ]
    STATUS_CHOICES = [
        ('Active', 'Active'),
        ('Inactive', 'Inactive'),
    ]

    employee_id = models.CharField(max_length=10, unique=True, editable=False)
    name = models.CharField(max_length=200)
    phone_number = models.CharField(max_length=10, unique=True, validators=[phone_validator])
    address = models.TextField()
    team = models.CharField(max_length=20, choices=TEAM_CHOICES)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='Active')
    aadhaar = models.FileField(upload_to='employees/', blank=True, null=True)
    photo = models.ImageField(upload_to='employees/')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        if not self.employee_id:
            self.employee_id = next_employee_id()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.employee_id} - {self.name}"

    class Meta:
        db_table = 'employees'
        ordering = ['employee_id']


class DailyAssignment(models.Model):
    """Who is on the till and who is managing a branch on a given day"""
    branch = models.ForeignKey('locations.Branch', on_delete=models.CASCADE, related_name='daily_assignments')
    date = models.DateField()
    cashier = models.ForeignKey(Employee, on_delete=models.SET_NULL, null=True, blank=True, related_name='cashier_assignments')
    manager = models.ForeignKey(Employee, on_delete=models.SET_NULL, null=True, blank=True, related_name='manager_assignments')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.branch} {self.date}"

    class Meta:
        db_table = 'daily_assignments'
        unique_together = ['branch', 'date']
