"""Voucher URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.vouchers.views import VoucherViewSet

router = DefaultRouter(trailing_slash=True)
router.register("vouchers", VoucherViewSet, basename="voucher")

urlpatterns = router.urls
