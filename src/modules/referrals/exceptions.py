"""Referral domain exceptions."""

from __future__ import annotations

from shared.domain.exceptions import Conflict, NotFound


class ReferralCodeNotFound(NotFound):
    """No active referral code matches."""


class ReferralCodeAlreadyExists(Conflict):
    """The user already owns an active referral code."""
