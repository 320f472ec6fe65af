"""
URL configuration for the back-office service. Every app mounts its routes
under ``api/v1/``.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Bakery Back-Office Admin Panel"
admin.site.site_title = "Bakery Back-Office Admin Portal"
admin.site.index_title = "Welcome to the Bakery Back-Office"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backoffice.core.urls')),
    path('api/v1/', include('backoffice.locations.urls')),
    path('api/v1/', include('backoffice.parties.urls')),
    path('api/v1/', include('backoffice.catalog.urls')),
    path('api/v1/', include('backoffice.inventory.urls')),
    path('api/v1/', include('backoffice.staff.urls')),
    path('api/v1/', include('backoffice.pos.urls')),
    path('api/v1/', include('backoffice.purchasing.urls')),
    path('api/v1/', include('backoffice.finance.urls')),
    path('api/v1/', include('backoffice.reports.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
