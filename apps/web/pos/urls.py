"""
URL routing for Clover integration endpoints.

The webhook is public (signature-verified); the rest are staff-only.
"""

from django.urls import path

from apps.web.pos import views, webhooks

app_name = "pos"

urlpatterns = [
    # Inbound webhooks from Clover
    path("webhooks/orders", webhooks.clover_order_webhook, name="order_webhook"),
    # Polling fallback (cron or manual)
    path("poll-orders", views.poll_orders, name="poll_orders"),
    # Manual push trigger
    path("push-order/<uuid:order_id>", views.push_order, name="push_order"),
]
