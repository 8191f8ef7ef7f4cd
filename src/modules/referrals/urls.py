"""Referral URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.referrals.views import ReferralViewSet

router = DefaultRouter(trailing_slash=True)
router.register("referrals", ReferralViewSet, basename="referral")

urlpatterns = router.urls
