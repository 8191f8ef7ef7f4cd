"""Referral API views.

- ``POST /referrals/``: generate the caller's code.
- ``GET /referrals/me/``: the caller's code and earnings.
- ``GET /referrals/validate/{code}/``: whether a code can be used.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.referrals.exceptions import (
    ReferralCodeAlreadyExists,
    ReferralCodeNotFound,
)
from modules.referrals.repositories.django_repository import ReferralDjangoRepository
from modules.referrals.serializers import ReferralCodeSerializer
from modules.referrals.services import ReferralService


class ReferralViewSet(ViewSet):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ReferralService(repository=ReferralDjangoRepository())

    def create(self, request: Request) -> Response:
        try:
            referral = self._service.generate_code(request.user)
        except ReferralCodeAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(
            ReferralCodeSerializer(referral).data, status=status.HTTP_201_CREATED
        )

    @action(detail=False, methods=["get"], url_path="me")
    def me(self, request: Request) -> Response:
        try:
            referral = self._service.get_my_code(request.user)
        except ReferralCodeNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        return Response(ReferralCodeSerializer(referral).data)

    @action(detail=False, methods=["get"], url_path=r"validate/(?P<code>[^/.]+)")
    def validate(self, request: Request, code: str | None = None) -> Response:
        try:
            referral = self._service.validate_code(code)
        except ReferralCodeNotFound as exc:
            return Response(
                {"detail": str(exc), "valid": False},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response({"code": referral.code, "valid": True})
