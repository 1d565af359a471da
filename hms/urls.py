"""
Root URL configuration.

API routes live in ``frontdesk.routers`` without trailing slashes;
the OpenAPI schema is served at ``/swagger.json`` with Swagger UI at
``/swagger/`` and ReDoc at ``/redoc/``.
"""
from django.contrib import admin
from django.urls import path, include

from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

api_info = openapi.Info(
    title="Hospital Front Desk API",
    default_version='v1',
    description=(
        "Patient registration with UHIDs, Visit IDs, doctor shifts, "
        "slot availability and appointment booking."
    ),
    license=openapi.License(name="Proprietary"),
)

schema_view = get_schema_view(
    api_info,
    public=True,
    permission_classes=(permissions.AllowAny,),
    authentication_classes=(),
)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('frontdesk.routers')),
    path('swagger.json', schema_view.without_ui(cache_timeout=0), name='schema-json'),
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
]
