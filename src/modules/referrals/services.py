"""Referral service layer (Use Cases).

Business rules enforced here:
- A user holds at most one active referral code.
- Codes are built from the first six alphanumerics of the owner's email
  local-part plus a random suffix, retried until unique.
- During checkout an unknown or inactive code is ignored; it never
  fails the order.
"""

from __future__ import annotations

import re
import uuid
from typing import TYPE_CHECKING, Optional

import structlog
from django.db import transaction

from modules.referrals.exceptions import (
    ReferralCodeAlreadyExists,
    ReferralCodeNotFound,
)
from modules.referrals.models import ReferralCode

if TYPE_CHECKING:
    from modules.referrals.repositories.interfaces import IReferralRepository

logger = structlog.get_logger(__name__)

CODE_PREFIX_LENGTH = 6
CODE_SUFFIX_LENGTH = 6
CODE_MAX_ATTEMPTS = 10


def code_prefix(email: str) -> str:
    local_part = (email or "").split("@", 1)[0]
    prefix = re.sub(r"[^A-Za-z0-9]", "", local_part)[:CODE_PREFIX_LENGTH].upper()
    return prefix or "REF"


class ReferralService:
    def __init__(self, repository: IReferralRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def generate_code(self, user) -> ReferralCode:
        """Issue the user's referral code.

        Raises:
            ReferralCodeAlreadyExists: the user already has an active code.
        """
        log = logger.bind(user_id=str(user.id))
        if self._repo.get_active_for_user(user.id):
            log.warning("referral.already_exists")
            raise ReferralCodeAlreadyExists("You already have an active referral code.")

        prefix = code_prefix(user.email)
        for _ in range(CODE_MAX_ATTEMPTS):
            code = prefix + uuid.uuid4().hex[:CODE_SUFFIX_LENGTH].upper()
            if not self._repo.code_exists(code):
                break
        else:
            raise ReferralCodeAlreadyExists("Could not generate a unique referral code.")

        referral = self._repo.save(ReferralCode(user_id=user.id, code=code))
        log.info("referral.generated", code=referral.code)
        return referral

    def register_use(self, code: Optional[str]) -> Optional[ReferralCode]:
        """Credit one use to ``code``; returns ``None`` when the code is unknown.

        Must run inside the caller's transaction so the credit is undone
        if the order fails.
        """
        if not code:
            return None
        referral = self._repo.get_active_by_code(code)
        if referral is None:
            logger.info("referral.ignored", code=code)
            return None
        self._repo.register_use(referral)
        logger.info(
            "referral.used",
            code=referral.code,
            usage_count=referral.usage_count,
            total_earnings=str(referral.total_earnings),
        )
        return referral

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_my_code(self, user) -> ReferralCode:
        referral = self._repo.get_active_for_user(user.id)
        if referral is None:
            raise ReferralCodeNotFound("You do not have a referral code yet.")
        return referral

    def validate_code(self, code: str) -> ReferralCode:
        referral = self._repo.get_active_by_code(code)
        if referral is None:
            raise ReferralCodeNotFound(f"Referral code '{code}' not found.")
        return referral
