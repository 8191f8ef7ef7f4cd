"""Order service layer (Use Cases).

Orchestrates order creation, status transitions and cancellation.  Every
write operation is one ``transaction.atomic`` block: when any step
fails, stock debits, order rows and voucher/referral counters of that
operation are all rolled back together.

Business rules enforced:
- Products are locked in primary-key order, then debited through the
  Stock Ledger; a shortfall raises ``InsufficientStock``.
- Prices are snapshotted onto the items; totals come from the Pricing
  Calculator.
- A voucher is locked, validated (window, minimum, global and
  per-customer limits) and its counter incremented only after the order
  is written.
- An unknown referral code is ignored; a valid one is credited.
- Status transitions follow ``VALID_TRANSITIONS``; cancelling credits
  every item's stock back and marks the payment REFUNDED, delivering
  marks it PAID.
- Every transition writes a history record and outbox events.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional
from uuid import UUID

import structlog
from django.db import models, transaction
from django.utils import timezone

from modules.orders import policies, pricing
from modules.orders.constants import CUSTOMER_CANCELLABLE, OrderStatus, PaymentStatus
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.exceptions import (
    EmptyOrder,
    InvalidStateTransition,
    OrderNotFound,
    ProductNotFound,
)
from modules.products.stock import StockLedger
from modules.vouchers.constants import VoucherType
from modules.vouchers.exceptions import VoucherNotFound
from modules.vouchers.validator import VoucherValidator
from shared.domain.exceptions import Conflict, Unauthorized

if TYPE_CHECKING:
    from modules.accounts.actors import Actor
    from modules.orders.dtos import CreateOrderDTO, UpdateStatusDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.referrals.services import ReferralService
    from modules.vouchers.repositories.interfaces import IVoucherRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Collaborators are injected through the constructor; the ledger,
    validator and pricing policy default to their standard
    implementations.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        voucher_repository: IVoucherRepository,
        referral_service: ReferralService,
        stock_ledger: Optional[StockLedger] = None,
        voucher_validator: Optional[VoucherValidator] = None,
        pricing_policy: Optional[pricing.PricingPolicy] = None,
    ) -> None:
        self._order_repo = order_repository
        self._voucher_repo = voucher_repository
        self._referrals = referral_service
        self._stock = stock_ledger or StockLedger()
        self._vouchers = voucher_validator or VoucherValidator()
        self._pricing = pricing_policy or pricing.PricingPolicy.from_settings()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO, actor: Actor) -> Order:
        """Create a PENDING order for ``actor``.

        Raises:
            EmptyOrder: no items were requested.
            ProductNotFound: a product does not exist.
            InactiveProduct: a product is not for sale.
            InsufficientStock: not enough stock for a line.
            VoucherNotFound: the voucher code is unknown.
            VoucherInvalid: the voucher cannot be applied.
            Conflict: the idempotency key belongs to another customer.
        """
        log = logger.bind(customer_id=str(actor.id))
        log.info("order.creation_started", item_count=len(dto.items))

        # 0. Idempotency check
        if dto.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(dto.idempotency_key)
            if existing:
                if existing.customer_id != actor.id:
                    raise Conflict("Idempotency key already used by another request.")
                log.info(
                    "order.idempotency_hit",
                    order_id=str(existing.id),
                    key=dto.idempotency_key,
                )
                return existing

        if not dto.items:
            raise EmptyOrder("Order must have at least one item.")

        # 1. Lock products, debit stock, snapshot prices
        products = self._stock.lock(item.product_id for item in dto.items)
        subtotal = pricing.ZERO
        lines = []

        for item in dto.items:
            product = products.get(str(item.product_id))
            if product is None:
                raise ProductNotFound(f"Product {item.product_id} not found.")

            line_total = pricing.line_subtotal(product.price, item.quantity)
            remaining = self._stock.debit(product.id, item.quantity)
            subtotal += line_total
            lines.append(
                {
                    "product_id": product.id,
                    "quantity": item.quantity,
                    "unit_price": product.price,
                }
            )
            log.info(
                "order.stock_reserved",
                product_id=str(product.id),
                quantity=item.quantity,
                remaining=remaining,
            )

        # 2. Voucher
        voucher = None
        discount = pricing.ZERO
        if dto.voucher_code:
            voucher = self._voucher_repo.get_by_code_for_update(dto.voucher_code)
            if voucher is None:
                raise VoucherNotFound(f"Voucher '{dto.voucher_code}' not found.")
            uses = 0
            if voucher.per_user_limit is not None:
                uses = self._order_repo.count_voucher_uses(voucher.code, actor.id)
            discount = self._vouchers.discount_for(voucher, subtotal, customer_uses=uses)
            log.info("order.voucher_applied", code=voucher.code, discount=str(discount))

        # 3. Totals
        breakdown = pricing.price_order(
            subtotal,
            discount,
            self._pricing,
            free_shipping=(
                voucher is not None
                and voucher.discount_type == VoucherType.FREE_SHIPPING
            ),
        )

        # 4-5. Persist order + items (order number generated on save)
        order = self._order_repo.create(
            {
                "customer_id": actor.id,
                "items": lines,
                "subtotal": breakdown.subtotal,
                "discount": breakdown.discount,
                "shipping": breakdown.shipping,
                "tax": breakdown.tax,
                "total": breakdown.total,
                "shipping_address": dto.shipping_address.model_dump(),
                "payment_method": dto.payment_method,
                "voucher_code": voucher.code if voucher else "",
                "notes": dto.notes or "",
                "idempotency_key": dto.idempotency_key,
            }
        )

        # 6. Voucher counter
        if voucher is not None:
            self._voucher_repo.increment_usage(voucher)

        # 7. Referral credit
        referral = self._referrals.register_use(dto.referral_code)
        if referral is not None:
            order.referral_code = referral.code

        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                order_number=order.order_number,
                customer_id=str(actor.id),
                total=str(order.total),
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.PENDING,
            notes="Order created",
            user_id=actor.id,
        )

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            total=str(order.total),
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def update_status(self, order_id: UUID, dto: UpdateStatusDTO, actor: Actor) -> Order:
        """Move an order to ``dto.status`` (seller of an item, or admin).

        Raises:
            OrderNotFound: order does not exist.
            Unauthorized: actor is neither admin nor a seller in the order.
            InvalidStateTransition: the transition table forbids the move.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(
            order_id=str(order_id),
            current_status=order.status,
            new_status=dto.status,
        )

        if not policies.can_update_status(actor, order):
            log.warning("order.update_forbidden", actor_id=str(actor.id))
            raise Unauthorized("You are not allowed to update this order.")

        if order.is_terminal:
            log.warning("order.already_final")
            raise InvalidStateTransition(
                order.status,
                dto.status,
                f"Order is already {order.status} and cannot change.",
            )

        if not order.can_transition_to(dto.status):
            log.warning("order.invalid_transition")
            raise InvalidStateTransition(order.status, dto.status)

        if dto.status == OrderStatus.CANCELLED:
            self._cancel(order, dto.cancel_reason, actor, notes=dto.notes)
        else:
            old_status = order.status
            order.status = dto.status
            if dto.status == OrderStatus.DELIVERED:
                order.payment_status = PaymentStatus.PAID
            order.add_domain_event(
                OrderStatusChanged(
                    aggregate_id=order.id,
                    old_status=old_status,
                    new_status=order.status,
                )
            )
            self._order_repo.save(order)
            self._order_repo.add_history(
                order_id=order.id,
                status=order.status,
                notes=dto.notes,
                old_status=old_status,
                user_id=actor.id,
            )

        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(order_id))

    @transaction.atomic
    def cancel_order(self, order_id: UUID, reason: str, actor: Actor) -> Order:
        """Customer-facing cancellation (the order's customer, or admin).

        Only PENDING and PROCESSING orders can be cancelled here.

        Raises:
            OrderNotFound: order does not exist.
            Unauthorized: actor is neither the customer nor an admin.
            InvalidStateTransition: the order is past PROCESSING.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=str(order_id), current_status=order.status)

        if not policies.can_cancel(actor, order):
            log.warning("order.cancel_forbidden", actor_id=str(actor.id))
            raise Unauthorized("You are not allowed to cancel this order.")

        if order.status not in CUSTOMER_CANCELLABLE:
            log.warning("order.cancel_not_allowed")
            raise InvalidStateTransition(
                order.status,
                OrderStatus.CANCELLED,
                f"Cannot cancel order in status {order.status}.",
            )

        self._cancel(order, reason, actor)
        log.info("order.cancelled")
        return self._order_repo.get_by_id(str(order_id))

    def _cancel(self, order: Order, reason: str, actor: Actor, notes: str = "") -> None:
        """Compensate a placed order: credit stock back, refund, record.

        The caller holds the order row lock, so stock is credited once.
        """
        for item in sorted(order.items.all(), key=lambda i: str(i.product_id)):
            restored = self._stock.credit(item.product_id, item.quantity)
            logger.info(
                "order.stock_released",
                order_id=str(order.id),
                product_id=str(item.product_id),
                quantity=item.quantity,
                restored_stock=restored,
            )

        old_status = order.status
        order.status = OrderStatus.CANCELLED
        order.cancel_reason = reason or ""
        order.cancelled_at = timezone.now()
        order.payment_status = PaymentStatus.REFUNDED
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                old_status=old_status,
                new_status=OrderStatus.CANCELLED,
            )
        )
        order.add_domain_event(OrderCancelled(aggregate_id=order.id, reason=order.cancel_reason))
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.CANCELLED,
            notes=notes or reason or "Order cancelled",
            old_status=old_status,
            user_id=actor.id,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str, actor: Actor) -> Order:
        """Retrieve a single order visible to ``actor``.

        Raises:
            OrderNotFound: the order does not exist.
            Unauthorized: the order exists but the actor may not see it.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        if not policies.can_view_order(actor, order):
            raise Unauthorized("You are not allowed to view this order.")
        return order

    def list_orders(self, actor: Actor) -> "models.QuerySet[Order]":
        """Orders visible to ``actor``; status filtering happens in the view."""
        return policies.visible_orders(actor, self._order_repo.list())
