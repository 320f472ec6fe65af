from django.urls import path
from .views import branch_list_create, branch_detail, branch_public_list

urlpatterns = [
    path('branches/', branch_list_create, name='branch-list-create'),
    path('branches/public/', branch_public_list, name='branch-public-list'),
    path('branches/<int:pk>/', branch_detail, name='branch-detail'),
]
