"""Referral repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.referrals.models import ReferralCode


class IReferralRepository(IRepository["ReferralCode"]):
    @abstractmethod
    def get_active_by_code(self, code: str) -> Optional["ReferralCode"]:
        """Retrieve an active referral code (case-insensitive)."""

    @abstractmethod
    def get_active_for_user(self, user_id) -> Optional["ReferralCode"]:
        """Retrieve the user's active referral code, if any."""

    @abstractmethod
    def code_exists(self, code: str) -> bool:
        """Whether any code (active or not) already uses ``code``."""

    @abstractmethod
    def register_use(self, referral: "ReferralCode") -> None:
        """Atomically add one use and one reward to the code's counters."""
