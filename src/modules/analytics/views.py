"""Analytics API views."""

from __future__ import annotations

from django.utils import timezone
from django.utils.dateparse import parse_datetime
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.accounts.actors import actor_for
from modules.analytics.services import AnalyticsService
from shared.domain.exceptions import InvalidInput, Unauthorized


class RevenueSummaryView(APIView):
    """GET /api/v1/analytics/summary/?start=<iso>&end=<iso>"""

    def get(self, request: Request) -> Response:
        bounds = {}
        for name in ("start", "end"):
            raw = request.query_params.get(name)
            if raw:
                value = parse_datetime(raw)
                if value is None:
                    return Response(
                        {"detail": f"{name} must be an ISO 8601 datetime."},
                        status=status.HTTP_400_BAD_REQUEST,
                    )
                if timezone.is_naive(value):
                    value = timezone.make_aware(value)
                bounds[name] = value

        try:
            summary = AnalyticsService().summary(actor_for(request.user), **bounds)
        except Unauthorized as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidInput as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(summary.model_dump(mode="json"))


class ProductSummaryView(APIView):
    """GET /api/v1/analytics/products/"""

    def get(self, request: Request) -> Response:
        try:
            summary = AnalyticsService().products(actor_for(request.user))
        except Unauthorized as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(summary.model_dump(mode="json"))
