"""Admin registrations for core models."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import SystemSetting, User


@admin.register(SystemSetting)
class SystemSettingAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["key", "value", "updated_at"]
    search_fields = ["key"]
    readonly_fields = ["created_at", "updated_at"]


@admin.register(User)
class UserAdmin(BaseUserAdmin):  # type: ignore[type-arg]
    list_display = [
        "username",
        "email",
        "clover_employee_id",
        "clover_merchant_id",
        "is_staff",
        "is_active",
    ]
    list_filter = ["is_staff", "is_active"]
    search_fields = ["username", "email", "clover_employee_id"]
    fieldsets = (
        *BaseUserAdmin.fieldsets,  # type: ignore[misc]
        ("Clover", {"fields": ("clover_employee_id", "clover_merchant_id")}),
    )
