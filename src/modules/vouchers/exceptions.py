"""Voucher domain exceptions."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List

from shared.domain.exceptions import Conflict, InvalidInput, NotFound


class VoucherRejection(str, Enum):
    """Why a voucher cannot be applied, in the order the checks run."""

    INACTIVE = "inactive"
    NOT_STARTED = "not_started"
    EXPIRED = "expired"
    BELOW_MINIMUM = "below_minimum_purchase"
    USAGE_LIMIT_REACHED = "usage_limit_reached"
    USER_LIMIT_REACHED = "per_user_limit_reached"


class VoucherNotFound(NotFound):
    """No voucher exists with the given code."""


class VoucherAlreadyExists(Conflict):
    """Another voucher already uses this code."""


class VoucherInvalid(InvalidInput):
    """The voucher exists but cannot be applied to this purchase."""

    def __init__(self, reason: VoucherRejection, message: str) -> None:
        self.reason = reason
        super().__init__(message)


class InvalidVoucherData(InvalidInput):
    """Voucher fields are inconsistent (e.g. a percentage above 100)."""

    def __init__(self, errors: Dict[str, List[str]]) -> None:
        self.errors = errors
        super().__init__(
            "; ".join(f"{field}: {' '.join(messages)}" for field, messages in errors.items())
        )
