"""Unit tests for the order status state machine.

Covers:
- Transition table helpers (``can_transition_to``, ``is_terminal``).
- Seller/admin status updates, including payment side effects.
- Customer cancellation and its compensation (stock credit, refund).
- History and outbox records written on every transition.
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.core.models import OutboxEvent
from modules.orders.constants import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
    PaymentStatus,
)
from modules.orders.dtos import UpdateStatusDTO
from modules.orders.exceptions import InvalidStateTransition, OrderNotFound
from modules.orders.models import Order, OrderStatusHistory
from shared.domain.exceptions import Unauthorized

pytestmark = pytest.mark.unit


def _advance(service, order, status, actor):
    return service.update_status(order.id, UpdateStatusDTO(status=status), actor)


# ---------------------------------------------------------------------------
# Transition table
# ---------------------------------------------------------------------------


class TestTransitionTable:
    @pytest.mark.parametrize("status", sorted(TERMINAL_STATES))
    def test_terminal_states_allow_nothing(self, status):
        order = Order(status=status)
        assert order.is_terminal
        assert all(not order.can_transition_to(target) for target in OrderStatus.values)

    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.PROCESSING, OrderStatus.PENDING),
            (OrderStatus.SHIPPED, OrderStatus.PROCESSING),
            (OrderStatus.SHIPPED, OrderStatus.PENDING),
        ],
    )
    def test_backward_moves_rejected(self, current, target):
        assert not Order(status=current).can_transition_to(target)

    @pytest.mark.parametrize("status", OrderStatus.values)
    def test_self_transition_rejected(self, status):
        assert not Order(status=status).can_transition_to(status)

    def test_every_live_state_can_be_cancelled(self):
        for status, targets in VALID_TRANSITIONS.items():
            if status not in TERMINAL_STATES:
                assert OrderStatus.CANCELLED in targets


# ---------------------------------------------------------------------------
# UpdateStatus
# ---------------------------------------------------------------------------


class TestUpdateStatus:
    def test_full_lifecycle(self, order_service, placed_order, seller):
        for status in (OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED):
            order = _advance(order_service, placed_order, status, seller)
            assert order.status == status

        assert order.payment_status == PaymentStatus.PAID
        history = list(
            OrderStatusHistory.objects.filter(order=placed_order)
            .order_by("created_at", "id")
            .values_list("old_status", "new_status")
        )
        assert history == [
            (None, OrderStatus.PENDING),
            (OrderStatus.PENDING, OrderStatus.PROCESSING),
            (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
            (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
        ]

    def test_skip_ahead_allowed(self, order_service, placed_order, admin):
        order = _advance(order_service, placed_order, OrderStatus.SHIPPED, admin)
        assert order.status == OrderStatus.SHIPPED

    def test_backward_move_rejected(self, order_service, placed_order, seller):
        _advance(order_service, placed_order, OrderStatus.SHIPPED, seller)

        with pytest.raises(InvalidStateTransition) as exc_info:
            _advance(order_service, placed_order, OrderStatus.PROCESSING, seller)

        assert exc_info.value.current == OrderStatus.SHIPPED
        assert exc_info.value.target == OrderStatus.PROCESSING

    def test_delivered_is_final(self, order_service, placed_order, seller):
        _advance(order_service, placed_order, OrderStatus.DELIVERED, seller)
        with pytest.raises(InvalidStateTransition):
            _advance(order_service, placed_order, OrderStatus.CANCELLED, seller)

    def test_final_order_reports_it_cannot_change(
        self, order_service, placed_order, seller, admin
    ):
        _advance(order_service, placed_order, OrderStatus.CANCELLED, seller)

        with pytest.raises(InvalidStateTransition) as exc_info:
            _advance(order_service, placed_order, OrderStatus.PROCESSING, admin)

        assert "cannot change" in str(exc_info.value)
        placed_order.refresh_from_db()
        assert placed_order.status == OrderStatus.CANCELLED

    def test_customer_cannot_update(self, order_service, placed_order, customer):
        with pytest.raises(Unauthorized):
            _advance(order_service, placed_order, OrderStatus.PROCESSING, customer)

    def test_unrelated_seller_cannot_update(self, order_service, placed_order, other_seller):
        with pytest.raises(Unauthorized):
            _advance(order_service, placed_order, OrderStatus.PROCESSING, other_seller)
        placed_order.refresh_from_db()
        assert placed_order.status == OrderStatus.PENDING

    def test_missing_order(self, order_service, admin):
        with pytest.raises(OrderNotFound):
            order_service.update_status(
                uuid4(), UpdateStatusDTO(status=OrderStatus.PROCESSING), admin
            )

    def test_seller_cancel_from_shipped_restores_stock(
        self, order_service, placed_order, product, seller
    ):
        _advance(order_service, placed_order, OrderStatus.SHIPPED, seller)

        order = order_service.update_status(
            placed_order.id,
            UpdateStatusDTO(status=OrderStatus.CANCELLED, cancel_reason="lost in transit"),
            seller,
        )

        assert order.status == OrderStatus.CANCELLED
        assert order.cancel_reason == "lost in transit"
        assert order.payment_status == PaymentStatus.REFUNDED
        product.refresh_from_db()
        assert product.stock_quantity == 10

    def test_writes_status_changed_event(self, order_service, placed_order, seller):
        _advance(order_service, placed_order, OrderStatus.PROCESSING, seller)

        event = OutboxEvent.objects.get(
            aggregate_id=str(placed_order.id), event_type="OrderStatusChanged"
        )
        assert event.payload["old_status"] == OrderStatus.PENDING
        assert event.payload["new_status"] == OrderStatus.PROCESSING


# ---------------------------------------------------------------------------
# CancelOrder
# ---------------------------------------------------------------------------


class TestCancelOrder:
    def test_cancel_pending_restores_stock_and_refunds(
        self, order_service, placed_order, product, customer
    ):
        product.refresh_from_db()
        assert product.stock_quantity == 7

        order = order_service.cancel_order(placed_order.id, "changed my mind", customer)

        assert order.status == OrderStatus.CANCELLED
        assert order.payment_status == PaymentStatus.REFUNDED
        assert order.cancel_reason == "changed my mind"
        assert order.cancelled_at is not None
        product.refresh_from_db()
        assert product.stock_quantity == 10

    def test_cancel_processing(self, order_service, placed_order, seller, customer):
        _advance(order_service, placed_order, OrderStatus.PROCESSING, seller)
        order = order_service.cancel_order(placed_order.id, "", customer)
        assert order.status == OrderStatus.CANCELLED

    @pytest.mark.parametrize("status", [OrderStatus.SHIPPED, OrderStatus.DELIVERED])
    def test_customer_cannot_cancel_after_dispatch(
        self, order_service, placed_order, product, seller, customer, status
    ):
        _advance(order_service, placed_order, status, seller)

        with pytest.raises(InvalidStateTransition):
            order_service.cancel_order(placed_order.id, "too late", customer)

        placed_order.refresh_from_db()
        product.refresh_from_db()
        assert placed_order.status == status
        assert product.stock_quantity == 7

    def test_cancel_twice_credits_stock_once(
        self, order_service, placed_order, product, customer
    ):
        order_service.cancel_order(placed_order.id, "", customer)
        with pytest.raises(InvalidStateTransition):
            order_service.cancel_order(placed_order.id, "", customer)

        product.refresh_from_db()
        assert product.stock_quantity == 10

    def test_other_customer_cannot_cancel(self, order_service, placed_order, other_customer):
        with pytest.raises(Unauthorized):
            order_service.cancel_order(placed_order.id, "", other_customer)

    def test_seller_cannot_use_customer_cancel(self, order_service, placed_order, seller):
        with pytest.raises(Unauthorized):
            order_service.cancel_order(placed_order.id, "", seller)

    def test_admin_can_cancel(self, order_service, placed_order, admin):
        order = order_service.cancel_order(placed_order.id, "fraud check", admin)
        assert order.status == OrderStatus.CANCELLED

    def test_writes_history_and_events(self, order_service, placed_order, customer):
        order_service.cancel_order(placed_order.id, "changed my mind", customer)

        history = OrderStatusHistory.objects.filter(
            order=placed_order, new_status=OrderStatus.CANCELLED
        ).get()
        assert history.old_status == OrderStatus.PENDING
        assert history.notes == "changed my mind"

        event_types = set(
            OutboxEvent.objects.filter(aggregate_id=str(placed_order.id)).values_list(
                "event_type", flat=True
            )
        )
        assert event_types == {"OrderCreated", "OrderStatusChanged", "OrderCancelled"}
