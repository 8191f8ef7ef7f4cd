"""Order API views.

Exposes the ``OrderService`` via HTTP using a DRF ViewSet.  Domain
exceptions are caught and translated into HTTP status codes; anything
else (database failures included) propagates to Django's 500 handling.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.accounts.actors import actor_for
from modules.core.pagination import StandardResultsSetPagination
from modules.orders.dtos import CreateOrderDTO, UpdateStatusDTO
from modules.orders.exceptions import InsufficientStock
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    UpdateStatusSerializer,
)
from modules.orders.services import OrderService
from modules.referrals.repositories.django_repository import ReferralDjangoRepository
from modules.referrals.services import ReferralService
from modules.vouchers.exceptions import VoucherInvalid
from modules.vouchers.repositories.django_repository import VoucherDjangoRepository
from shared.domain.exceptions import (
    Conflict,
    DomainError,
    InvalidInput,
    NotFound,
    Unauthorized,
)


def domain_error_response(exc: DomainError) -> Response:
    """Translate a business-rule failure into an HTTP response."""
    if isinstance(exc, NotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, Unauthorized):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, (InsufficientStock, Conflict)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, InvalidInput):
        code = status.HTTP_400_BAD_REQUEST
    else:
        raise exc

    body = {"detail": str(exc)}
    if isinstance(exc, VoucherInvalid):
        body["reason"] = exc.reason.value
    return Response(body, status=code)


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.none()
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    pagination_class = StandardResultsSetPagination

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._order_repo = OrderDjangoRepository()
        self._service = OrderService(
            order_repository=self._order_repo,
            voucher_repository=VoucherDjangoRepository(),
            referral_service=ReferralService(repository=ReferralDjangoRepository()),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttling scope per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Supports idempotency via the ``Idempotency-Key`` header.
        Returns 200 if the key was already used, 201 for new orders.
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        idempotency_key = request.headers.get("Idempotency-Key")
        try:
            dto = CreateOrderDTO(
                **create_serializer.validated_data,
                idempotency_key=idempotency_key,
            )
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        replay = bool(idempotency_key) and (
            self._order_repo.get_by_idempotency_key(idempotency_key) is not None
        )

        try:
            order = self._service.create_order(dto, actor_for(request.user))
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(
            OrderSerializer(order).data,
            status=status.HTTP_200_OK if replay else status.HTTP_201_CREATED,
        )

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        return self._service.list_orders(actor_for(self.request.user))

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/?status=PENDING

        Role-scoped: customers see their own orders, sellers see orders
        containing their products, admins see everything.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(pk, actor_for(request.user))
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status Update
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/  (seller of an item, or admin)"""
        serializer = UpdateStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = UpdateStatusDTO(**serializer.validated_data)

        try:
            order = self._service.update_status(pk, dto, actor_for(request.user))
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Cancel (dedicated action)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/  (the customer, or admin)"""
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.cancel_order(
                pk,
                serializer.validated_data["reason"],
                actor_for(request.user),
            )
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)
