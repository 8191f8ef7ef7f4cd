"""Revenue and catalogue analytics for sellers and admins.

Revenue only counts DELIVERED orders (the payment is settled).  A seller's
figures cover every order that contains at least one of their products,
using the order total, the same visibility rule as the order list.

The daily series has one entry per calendar day of the window (local
time), zero-filled where nothing was delivered.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

import structlog
from django.db import models
from django.db.models import Count, Q, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone
from pydantic import BaseModel, ConfigDict

from modules.accounts.actors import Actor, AdminActor, CustomerActor
from modules.orders import policies, pricing
from modules.orders.constants import OrderStatus
from modules.orders.models import Order
from modules.products.models import Product
from shared.domain.exceptions import InvalidInput, Unauthorized

logger = structlog.get_logger(__name__)

DEFAULT_WINDOW = timedelta(days=30)
LOW_STOCK_THRESHOLD = 10


class DailyRevenue(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: date
    revenue: Decimal
    order_count: int


class RevenueSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    total_revenue: Decimal
    delivered_orders: int
    average_order_value: Decimal
    orders_by_status: Dict[str, int]
    daily_revenue: List[DailyRevenue]


class ProductSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_products: int
    low_stock_products: int
    low_stock_threshold: int


class AnalyticsService:
    def summary(
        self,
        actor: Actor,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> RevenueSummary:
        """Summarise orders created in ``[start, end]`` (default: last 30 days).

        Raises:
            Unauthorized: the actor is a customer.
            InvalidInput: ``start`` is after ``end``.
        """
        self._ensure_allowed(actor)

        end = end or timezone.now()
        start = start or end - DEFAULT_WINDOW
        if start > end:
            raise InvalidInput("start must not be after end.")

        orders = policies.visible_orders(actor, Order.objects.alive()).filter(
            created_at__gte=start, created_at__lte=end
        )
        delivered_orders = orders.filter(status=OrderStatus.DELIVERED)

        delivered = delivered_orders.aggregate(revenue=Sum("total"), count=Count("id"))
        revenue = pricing.money(delivered["revenue"] or pricing.ZERO)
        count = delivered["count"]

        by_status = {value: 0 for value in OrderStatus.values}
        for row in orders.order_by().values("status").annotate(n=Count("id")):
            by_status[row["status"]] = row["n"]

        logger.info(
            "analytics.summary",
            actor_id=str(actor.id),
            revenue=str(revenue),
            delivered_orders=count,
        )
        return RevenueSummary(
            start=start,
            end=end,
            total_revenue=revenue,
            delivered_orders=count,
            average_order_value=pricing.average(revenue, count),
            orders_by_status=by_status,
            daily_revenue=self._daily_revenue(delivered_orders, start, end),
        )

    def products(self, actor: Actor) -> ProductSummary:
        """Count the actor's live products and those at or below the low-stock mark.

        Admins see the whole catalogue, sellers their own listings.
        """
        self._ensure_allowed(actor)

        products = Product.objects.alive()
        if not isinstance(actor, AdminActor):
            products = products.filter(seller_id=actor.id)

        counts = products.aggregate(
            total=Count("id"),
            low=Count("id", filter=Q(stock_quantity__lte=LOW_STOCK_THRESHOLD)),
        )
        return ProductSummary(
            total_products=counts["total"],
            low_stock_products=counts["low"],
            low_stock_threshold=LOW_STOCK_THRESHOLD,
        )

    @staticmethod
    def _ensure_allowed(actor: Actor) -> None:
        if isinstance(actor, CustomerActor):
            raise Unauthorized("Analytics are available to sellers and admins only.")

    @staticmethod
    def _daily_revenue(
        delivered_orders: "models.QuerySet[Order]", start: datetime, end: datetime
    ) -> List[DailyRevenue]:
        rows = (
            delivered_orders.order_by()
            .annotate(day=TruncDate("created_at"))
            .values("day")
            .annotate(revenue=Sum("total"), n=Count("id"))
        )
        per_day = {row["day"]: (row["revenue"], row["n"]) for row in rows}

        series = []
        day = timezone.localtime(start).date()
        last = timezone.localtime(end).date()
        while day <= last:
            revenue, n = per_day.get(day, (pricing.ZERO, 0))
            series.append(
                DailyRevenue(day=day, revenue=pricing.money(revenue), order_count=n)
            )
            day += timedelta(days=1)
        return series
