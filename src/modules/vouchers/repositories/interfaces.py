"""Voucher repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.vouchers.models import Voucher


class IVoucherRepository(IRepository["Voucher"]):
    """Repository contract for the Voucher aggregate."""

    @abstractmethod
    def get_by_code(self, code: str) -> Optional["Voucher"]:
        """Retrieve a voucher by code (case-insensitive)."""

    @abstractmethod
    def get_by_code_for_update(self, code: str) -> Optional["Voucher"]:
        """Retrieve a voucher by code holding a row lock (SELECT FOR UPDATE).

        Must be called inside ``transaction.atomic``.
        """

    @abstractmethod
    def increment_usage(self, voucher: "Voucher") -> None:
        """Atomically add one to ``usage_count``."""

    @abstractmethod
    def list(self, seller_id: Optional[str] = None) -> "models.QuerySet[Voucher]":
        """List vouchers, optionally restricted to one seller."""
