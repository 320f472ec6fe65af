import logging
from datetime import datetime, timedelta

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.conf import settings
from django.db import IntegrityError
from django.shortcuts import get_object_or_404
from django.utils import timezone

from backoffice.core.permissions import HasRole, is_admin_user
from backoffice.locations.models import Branch
from .models import Employee, DailyAssignment
from .serializers import EmployeeSerializer, DailyAssignmentSerializer

logger = logging.getLogger('backoffice.staff')


def _first_error(errors):
    for value in errors.values():
        if isinstance(value, (list, tuple)) and value:
            return str(value[0])
        return str(value)
    return 'Invalid data'


@api_view(['GET', 'POST'])
@permission_classes([HasRole('superadmin', 'admin', 'branch')])
def employee_list_create(request):
    """List employees (optionally by team) or add one"""
    if request.method == 'GET':
        queryset = Employee.objects.all()
        team = request.query_params.get('team')
        if team:
            queryset = queryset.filter(team=team)
        status_param = request.query_params.get('status')
        if status_param:
            queryset = queryset.filter(status=status_param)
        return Response(EmployeeSerializer(queryset, many=True, context={'request': request}).data)

    if not is_admin_user(request.user):
        logger.warning(f"User {request.user.username} attempted to create an employee")
        return Response({'error': 'Access denied'}, status=status.HTTP_403_FORBIDDEN)

    serializer = EmployeeSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        logger.warning(f"Employee creation validation failed: {serializer.errors}")
        return Response({'error': _first_error(serializer.errors)}, status=status.HTTP_400_BAD_REQUEST)
    try:
        employee = serializer.save()
    except IntegrityError:
        return Response({'error': 'Phone number already exists'}, status=status.HTTP_400_BAD_REQUEST)
    logger.info(f"User {request.user.username} created employee {employee.employee_id} ({employee.name})")
    return Response({'message': 'Employee created successfully', 'employee': serializer.data}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([HasRole('superadmin', 'admin', 'branch')])
def employee_detail(request, pk):
    employee = get_object_or_404(Employee, pk=pk)

    if request.method == 'GET':
        return Response(EmployeeSerializer(employee, context={'request': request}).data)

    if not is_admin_user(request.user):
        logger.warning(f"User {request.user.username} attempted to modify employee {pk}")
        return Response({'error': 'Access denied'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        # Files are only replaced when a new one is uploaded
        serializer = EmployeeSerializer(employee, data=request.data, partial=True, context={'request': request})
        if not serializer.is_valid():
            return Response({'error': _first_error(serializer.errors)}, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        logger.info(f"User {request.user.username} updated employee {employee.employee_id}")
        return Response({'message': 'Employee updated successfully', 'employee': serializer.data})

    from backoffice.pos.models import Order
    days = settings.BACKOFFICE['EMPLOYEE_DELETE_ACTIVITY_DAYS']
    since = timezone.now() - timedelta(days=days)
    if Order.objects.filter(waiter=employee, created_at__gte=since).exists():
        logger.warning(f"Refusing to delete employee {employee.employee_id} with recent billing activity")
        return Response(
            {'error': f'Cannot delete employee with billing activity within the last {days} days'},
            status=status.HTTP_400_BAD_REQUEST,
        )
    employee.delete()
    logger.info(f"User {request.user.username} deleted employee {employee.employee_id}")
    return Response({'message': 'Employee deleted successfully'})


@api_view(['PUT'])
@permission_classes([HasRole('superadmin', 'admin')])
def employee_toggle_status(request, pk):
    employee = get_object_or_404(Employee, pk=pk)
    employee.status = 'Inactive' if employee.status == 'Active' else 'Active'
    employee.save(update_fields=['status', 'updated_at'])
    word = 'activated' if employee.status == 'Active' else 'deactivated'
    logger.info(f"User {request.user.username} {word} employee {employee.employee_id}")
    return Response({
        'message': f'Employee {word} successfully',
        'employee': EmployeeSerializer(employee, context={'request': request}).data,
    })


def _assignment_branch(request, branch_id):
    """Branch accounts may only manage their own outlet"""
    branch = get_object_or_404(Branch, pk=branch_id)
    if request.user.role == 'branch' and request.user.branch_id != branch.pk:
        return branch, Response({'error': 'Access denied'}, status=status.HTTP_403_FORBIDDEN)
    return branch, None


@api_view(['GET'])
@permission_classes([HasRole('branch', 'superadmin')])
def assignment_today(request, branch_id):
    branch, denied = _assignment_branch(request, branch_id)
    if denied:
        return denied
    assignment = DailyAssignment.objects.filter(branch=branch, date=timezone.localdate()).first()
    return Response(DailyAssignmentSerializer(assignment).data if assignment else {})


@api_view(['POST'])
@permission_classes([HasRole('branch', 'superadmin')])
def assignment_save(request, branch_id):
    """Create or update today's cashier/manager for a branch"""
    branch, denied = _assignment_branch(request, branch_id)
    if denied:
        return denied

    cashier_id = request.data.get('cashier')
    manager_id = request.data.get('manager')
    cashier = get_object_or_404(Employee, pk=cashier_id) if cashier_id else None
    manager = get_object_or_404(Employee, pk=manager_id) if manager_id else None

    assignment, _ = DailyAssignment.objects.get_or_create(branch=branch, date=timezone.localdate())
    if cashier:
        assignment.cashier = cashier
    if manager:
        assignment.manager = manager
    assignment.save()
    logger.info(f"User {request.user.username} saved daily assignment for {branch.name}")
    return Response({'message': 'Assignment saved successfully', 'assignment': DailyAssignmentSerializer(assignment).data})


@api_view(['GET'])
@permission_classes([HasRole('branch', 'admin', 'superadmin')])
def assignment_by_date(request, branch_id, date):
    branch, denied = _assignment_branch(request, branch_id)
    if denied:
        return denied
    try:
        day = datetime.strptime(date, '%Y-%m-%d').date()
    except ValueError:
        return Response({'error': 'Invalid date format. Use YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
    assignment = DailyAssignment.objects.filter(branch=branch, date=day).first()
    return Response(DailyAssignmentSerializer(assignment).data if assignment else {})
