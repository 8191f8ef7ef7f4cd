"""Marketplace user model.

The user is the authenticated identity behind every actor: customers
place orders, sellers own products and vouchers, admins see everything.
Only the ``role`` matters to the order core; registration, password
handling and token issuance stay with Django auth and SimpleJWT.
"""

from __future__ import annotations

import uuid6
from django.contrib.auth.models import AbstractUser
from django.db import models

from modules.accounts.constants import UserRole


class User(AbstractUser):
    """Custom auth user with a UUIDv7 key and a marketplace role."""

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    email = models.EmailField(max_length=254, unique=True)
    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.CUSTOMER,
    )

    class Meta:
        db_table = "users"
        indexes = [
            models.Index(fields=["role"], name="users_role_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"
