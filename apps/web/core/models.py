"""
Core models - users and runtime settings shared by every app.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base providing created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class User(AbstractUser):
    """
    Custom user model.

    Staff log in with a password. Clover employees who change orders on a
    device are mirrored as users without a usable password so history rows
    can point at them; they are keyed per merchant.
    """

    clover_employee_id = models.CharField(
        max_length=64,
        blank=True,
        help_text="Clover employee ID (for users mirrored from Clover)",
    )
    clover_merchant_id = models.CharField(
        max_length=64,
        blank=True,
        help_text="Clover merchant the employee belongs to",
    )

    class Meta:
        ordering = ["username"]
        constraints = [
            models.UniqueConstraint(
                fields=["clover_merchant_id", "clover_employee_id"],
                name="unique_clover_employee_per_merchant",
                condition=models.Q(clover_employee_id__gt=""),
            )
        ]

    def __str__(self) -> str:
        if self.clover_employee_id:
            return f"{self.get_full_name() or self.username} (Clover)"
        return self.username


class SystemSetting(TimeStampedModel):
    """
    Key/value settings that change at runtime.

    Holds values discovered from external systems, e.g. the Clover
    location id under `cloverLocationId`.
    """

    key = models.CharField(max_length=100, unique=True)
    value = models.TextField(blank=True)

    class Meta:
        ordering = ["key"]

    def __str__(self) -> str:
        return f"{self.key}={self.value}"
