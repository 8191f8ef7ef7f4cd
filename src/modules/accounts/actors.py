"""Actor variants used by authorization predicates.

An actor is the authenticated identity performing an operation.  It is
modelled as a closed set of immutable variants so that every policy in
``modules.orders.policies`` can branch on the *type* of actor instead of
comparing role strings ad hoc.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union
from uuid import UUID

from modules.accounts.constants import UserRole


@dataclass(frozen=True)
class CustomerActor:
    """A shopper; sees and cancels only their own orders."""

    id: UUID


@dataclass(frozen=True)
class SellerActor:
    """A merchant; sees orders that contain at least one of their products."""

    id: UUID


@dataclass(frozen=True)
class AdminActor:
    """Unrestricted operator."""

    id: UUID


Actor = Union[CustomerActor, SellerActor, AdminActor]


def actor_for(user: Any) -> Actor:
    """Map an authenticated Django user onto its actor variant.

    Superusers are always admins regardless of their stored role.
    """
    if getattr(user, "is_superuser", False):
        return AdminActor(id=user.id)
    role = getattr(user, "role", UserRole.CUSTOMER)
    if role == UserRole.ADMIN:
        return AdminActor(id=user.id)
    if role == UserRole.SELLER:
        return SellerActor(id=user.id)
    return CustomerActor(id=user.id)
