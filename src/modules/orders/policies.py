"""Authorization predicates over (actor, order).

- Customers see and cancel only their own orders.
- Sellers see, and may move along, orders containing at least one of
  their products.  The relationship is derived from the items, not stored.
- Admins are unrestricted.

Each predicate is a plain function so it can be tested without touching
the service's business logic.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import models

from modules.accounts.actors import Actor, AdminActor, CustomerActor, SellerActor

if TYPE_CHECKING:
    from modules.orders.models import Order


def _sells_in(actor: SellerActor, order: Order) -> bool:
    return any(item.product.seller_id == actor.id for item in order.items.all())


def can_view_order(actor: Actor, order: Order) -> bool:
    if isinstance(actor, AdminActor):
        return True
    if isinstance(actor, SellerActor):
        return _sells_in(actor, order)
    if isinstance(actor, CustomerActor):
        return order.customer_id == actor.id
    return False


def can_update_status(actor: Actor, order: Order) -> bool:
    if isinstance(actor, AdminActor):
        return True
    return isinstance(actor, SellerActor) and _sells_in(actor, order)


def can_cancel(actor: Actor, order: Order) -> bool:
    if isinstance(actor, AdminActor):
        return True
    return order.customer_id == actor.id


def visible_orders(actor: Actor, queryset: "models.QuerySet[Order]") -> "models.QuerySet[Order]":
    """Narrow ``queryset`` to the orders ``actor`` may see."""
    from modules.orders.models import OrderItem

    if isinstance(actor, AdminActor):
        return queryset
    if isinstance(actor, SellerActor):
        return queryset.filter(
            id__in=OrderItem.objects.filter(product__seller_id=actor.id).values(
                "order_id"
            )
        )
    if isinstance(actor, CustomerActor):
        return queryset.filter(customer_id=actor.id)
    return queryset.none()
