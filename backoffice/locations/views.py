import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.shortcuts import get_object_or_404
from django.db import IntegrityError
from django.db.models import ProtectedError
from django.core.cache import cache

from backoffice.core.model_cache import (
    get_branch_list_cache_key, get_cached_branch, cache_branch_data, BRANCH_LIST_CACHE_TTL,
)
from backoffice.core.permissions import is_admin_user
from .models import Branch
from .serializers import BranchSerializer, BranchPublicSerializer

logger = logging.getLogger('backoffice.locations')


def _is_superadmin(user):
    return getattr(user, 'role', None) == 'superadmin'


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def branch_list_create(request):
    """List branches or create a new branch (create requires superadmin)"""
    try:
        if request.method == 'GET':
            logger.info(f"User {request.user.username} requested branch list")

            # Branch accounts only see their own outlet
            scope = 'all' if is_admin_user(request.user) or not request.user.branch_id else f"branch-{request.user.branch_id}"
            cache_key = get_branch_list_cache_key(scope)
            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache hit for branch list (scope: {scope})")
                return Response(cached_data)

            branches = Branch.objects.all()
            if scope != 'all':
                branches = branches.filter(pk=request.user.branch_id)
            response_data = BranchSerializer(branches, many=True).data
            cache.set(cache_key, response_data, BRANCH_LIST_CACHE_TTL)
            return Response(response_data)

        if not _is_superadmin(request.user):
            logger.warning(f"User {request.user.username} attempted to create branch without superadmin privileges")
            return Response({'error': 'Only super admins can create branches'}, status=status.HTTP_403_FORBIDDEN)

        logger.info(f"User {request.user.username} creating branch with data: {request.data}")
        serializer = BranchSerializer(data=request.data)
        if serializer.is_valid():
            try:
                branch = serializer.save()
            except IntegrityError as e:
                logger.error(f"IntegrityError creating branch: {str(e)}", exc_info=True)
                return Response({'error': 'Branch ID already exists'}, status=status.HTTP_400_BAD_REQUEST)
            logger.info(f"Branch '{branch.name}' created successfully by {request.user.username}")
            return Response(serializer.data, status=status.HTTP_201_CREATED)

        logger.warning(f"Branch creation validation failed: {serializer.errors}")
        if 'branch_code' in serializer.errors:
            return Response({'error': str(serializer.errors['branch_code'][0])}, status=status.HTTP_400_BAD_REQUEST)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"Unexpected error in branch_list_create: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def branch_detail(request, pk):
    """Retrieve, update or delete a branch (changes require superadmin)"""
    branch = get_object_or_404(Branch, pk=pk)

    if request.method == 'GET':
        cached_data = get_cached_branch(pk)
        if cached_data:
            return Response(cached_data)
        response_data = BranchSerializer(branch).data
        cache_branch_data(response_data)
        return Response(response_data)

    if not _is_superadmin(request.user):
        logger.warning(f"User {request.user.username} attempted to modify branch {pk} without superadmin privileges")
        return Response({'error': 'Only super admins can modify branches'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        logger.info(f"User {request.user.username} updating branch {pk} with data: {request.data}")
        serializer = BranchSerializer(branch, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            logger.info(f"Branch {pk} updated successfully")
            return Response(serializer.data)
        logger.warning(f"Branch update validation failed: {serializer.errors}")
        if 'branch_code' in serializer.errors:
            return Response({'error': str(serializer.errors['branch_code'][0])}, status=status.HTTP_400_BAD_REQUEST)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    logger.info(f"User {request.user.username} deleting branch {pk} ({branch.name})")
    try:
        branch.delete()
    except ProtectedError:
        logger.warning(f"Branch {pk} still has orders or bills, refusing delete")
        return Response({'error': 'Cannot delete branch with linked orders or bills'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([AllowAny])
def branch_public_list(request):
    """Branch names for the login screen dropdown"""
    cache_key = get_branch_list_cache_key('public')
    cached_data = cache.get(cache_key)
    if cached_data is not None:
        return Response(cached_data)
    response_data = BranchPublicSerializer(Branch.objects.filter(is_active=True), many=True).data
    cache.set(cache_key, response_data, BRANCH_LIST_CACHE_TTL)
    return Response(response_data)
