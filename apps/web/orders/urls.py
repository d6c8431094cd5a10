"""
URL routing for order status endpoints (staff only).
"""

from django.urls import path

from apps.web.orders import views

app_name = "orders"

urlpatterns = [
    path("<uuid:order_id>/history", views.order_history, name="order_history"),
    path("<uuid:order_id>/status", views.update_order_status, name="order_status"),
]
