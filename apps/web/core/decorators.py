"""
Decorators for request handling and access control.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any

from django.http import HttpRequest, JsonResponse


def staff_required_json(view_func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator that restricts a JSON endpoint to active staff users.

    Unlike Django's `staff_member_required`, this never redirects to the
    admin login page: anonymous callers get 401, non-staff get 403.

    Usage:
        @require_GET
        @staff_required_json
        def poll_orders(request):
            ...
    """

    @wraps(view_func)
    def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> Any:
        user = request.user

        if not user.is_authenticated:
            return JsonResponse({"error": "Authentication required"}, status=401)

        if not (user.is_active and user.is_staff):
            return JsonResponse({"error": "Staff access required"}, status=403)

        return view_func(request, *args, **kwargs)

    return wrapper
