"""
URL configuration for Tabletop.
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    # Public API endpoints
    path("api/clover/", include("apps.web.pos.urls")),
    path("api/orders/", include("apps.web.orders.urls")),
]
