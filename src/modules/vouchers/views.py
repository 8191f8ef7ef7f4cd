"""Voucher API views.

- ``GET/POST /vouchers/``: list own vouchers / create (seller, admin).
- ``GET/PATCH/DELETE /vouchers/{id}/``: owner or admin; delete deactivates.
- ``GET /vouchers/validate/{code}/?subtotal=``: any authenticated user.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.accounts.actors import actor_for
from modules.core.pagination import StandardResultsSetPagination
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.vouchers.dtos import CreateVoucherDTO, UpdateVoucherDTO
from modules.vouchers.exceptions import (
    InvalidVoucherData,
    VoucherAlreadyExists,
    VoucherInvalid,
    VoucherNotFound,
)
from modules.vouchers.repositories.django_repository import VoucherDjangoRepository
from modules.vouchers.serializers import VoucherSerializer, VoucherWriteSerializer
from modules.vouchers.services import VoucherService
from shared.domain.exceptions import Unauthorized


class VoucherViewSet(GenericViewSet):
    serializer_class = VoucherSerializer
    pagination_class = StandardResultsSetPagination

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = VoucherService(
            repository=VoucherDjangoRepository(),
            usage_counter=OrderDjangoRepository().count_voucher_uses,
        )

    def list(self, request: Request) -> Response:
        """GET /api/v1/vouchers/"""
        try:
            queryset = self._service.list_vouchers(actor_for(request.user))
        except Unauthorized as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        page = self.paginate_queryset(queryset)
        serializer = VoucherSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        try:
            voucher = self._service.get_voucher(pk, actor_for(request.user))
        except VoucherNotFound:
            return Response(
                {"detail": "Voucher not found."}, status=status.HTTP_404_NOT_FOUND
            )
        except Unauthorized as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(VoucherSerializer(voucher).data)

    def create(self, request: Request) -> Response:
        serializer = VoucherWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        data.pop("is_active", None)

        try:
            dto = CreateVoucherDTO(**data)
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            voucher = self._service.create_voucher(dto, actor_for(request.user))
        except Unauthorized as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidVoucherData as exc:
            return Response(
                {"detail": str(exc), "errors": exc.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except VoucherAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(VoucherSerializer(voucher).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        serializer = VoucherWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        data.pop("code", None)
        data.pop("discount_type", None)

        try:
            dto = UpdateVoucherDTO(**data)
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            voucher = self._service.update_voucher(pk, dto, actor_for(request.user))
        except VoucherNotFound:
            return Response(
                {"detail": "Voucher not found."}, status=status.HTTP_404_NOT_FOUND
            )
        except InvalidVoucherData as exc:
            return Response(
                {"detail": str(exc), "errors": exc.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except Unauthorized as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(VoucherSerializer(voucher).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        try:
            self._service.deactivate_voucher(pk, actor_for(request.user))
        except VoucherNotFound:
            return Response(
                {"detail": "Voucher not found."}, status=status.HTTP_404_NOT_FOUND
            )
        except Unauthorized as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], url_path=r"validate/(?P<code>[^/.]+)")
    def validate(self, request: Request, code: str | None = None) -> Response:
        """GET /api/v1/vouchers/validate/{code}/?subtotal=120.00"""
        subtotal = None
        raw = request.query_params.get("subtotal")
        if raw is not None:
            try:
                subtotal = Decimal(raw)
            except InvalidOperation:
                subtotal = None
            if subtotal is None or not subtotal.is_finite() or subtotal < 0:
                return Response(
                    {"detail": "subtotal must be a non-negative decimal number."},
                    status=status.HTTP_400_BAD_REQUEST,
                )

        try:
            discount = self._service.check_code(
                code, actor_for(request.user), subtotal=subtotal
            )
        except VoucherNotFound:
            return Response(
                {"detail": "Voucher not found."}, status=status.HTTP_404_NOT_FOUND
            )
        except VoucherInvalid as exc:
            return Response(
                {"detail": str(exc), "reason": exc.reason.value, "valid": False},
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(
            {
                "code": code.strip().upper(),
                "valid": True,
                "discount": None if discount is None else str(discount),
            }
        )
