"""Voucher service layer (Use Cases).

Business rules enforced here:
- Only sellers and admins create vouchers; codes are unique.
- Only the owning seller or an admin may update or deactivate a voucher.
- Sellers list their own vouchers, admins list every voucher.
- Checking a code never changes the voucher.
- Created and updated vouchers pass the model consistency checks
  (percentage cap, non-negative amounts, ordered window) before saving.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.accounts.actors import Actor, AdminActor, CustomerActor, SellerActor
from modules.vouchers.exceptions import (
    InvalidVoucherData,
    VoucherAlreadyExists,
    VoucherNotFound,
)
from modules.vouchers.models import Voucher
from modules.vouchers.validator import VoucherValidator
from shared.domain.exceptions import Unauthorized

if TYPE_CHECKING:
    from modules.vouchers.dtos import CreateVoucherDTO, UpdateVoucherDTO
    from modules.vouchers.repositories.interfaces import IVoucherRepository

logger = structlog.get_logger(__name__)

# (voucher code, customer id) -> previous uses by that customer
UsageCounter = Callable[[str, object], int]


def can_manage_voucher(actor: Actor, voucher: Voucher) -> bool:
    if isinstance(actor, AdminActor):
        return True
    return isinstance(actor, SellerActor) and voucher.seller_id == actor.id


class VoucherService:
    def __init__(
        self,
        repository: IVoucherRepository,
        validator: Optional[VoucherValidator] = None,
        usage_counter: Optional[UsageCounter] = None,
    ) -> None:
        self._repo = repository
        self._validator = validator or VoucherValidator()
        self._usage_counter = usage_counter

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_voucher(self, dto: CreateVoucherDTO, actor: Actor) -> Voucher:
        if isinstance(actor, CustomerActor):
            raise Unauthorized("Only sellers and admins can create vouchers.")

        log = logger.bind(code=dto.code, seller_id=str(actor.id))
        if self._repo.get_by_code(dto.code):
            log.warning("voucher.duplicate_code")
            raise VoucherAlreadyExists(f"Voucher code '{dto.code}' already exists.")

        voucher = Voucher(seller_id=actor.id, **dto.model_dump())
        self._check_consistency(voucher)
        voucher = self._repo.save(voucher)
        log.info("voucher.created", voucher_id=str(voucher.id))
        return voucher

    @transaction.atomic
    def update_voucher(self, id: str, dto: UpdateVoucherDTO, actor: Actor) -> Voucher:
        voucher = self.get_voucher(id, actor)
        for field, value in dto.model_dump(exclude_none=True).items():
            setattr(voucher, field, value)
        self._check_consistency(voucher)
        voucher = self._repo.save(voucher)
        logger.info("voucher.updated", voucher_id=str(voucher.id))
        return voucher

    @transaction.atomic
    def deactivate_voucher(self, id: str, actor: Actor) -> Voucher:
        voucher = self.get_voucher(id, actor)
        voucher.is_active = False
        voucher = self._repo.save(voucher)
        logger.info("voucher.deactivated", voucher_id=str(voucher.id))
        return voucher

    def _check_consistency(self, voucher: Voucher) -> None:
        try:
            voucher.clean()
        except ValidationError as exc:
            logger.warning("voucher.rejected", errors=exc.message_dict)
            raise InvalidVoucherData(exc.message_dict) from exc

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_voucher(self, id: str, actor: Actor) -> Voucher:
        voucher = self._repo.get_by_id(id)
        if voucher is None:
            raise VoucherNotFound(f"Voucher {id} not found.")
        if not can_manage_voucher(actor, voucher):
            raise Unauthorized("You do not have access to this voucher.")
        return voucher

    def list_vouchers(self, actor: Actor) -> "models.QuerySet[Voucher]":
        if isinstance(actor, AdminActor):
            return self._repo.list()
        if isinstance(actor, SellerActor):
            return self._repo.list(seller_id=actor.id)
        raise Unauthorized("Only sellers and admins can list vouchers.")

    def check_code(
        self,
        code: str,
        actor: Actor,
        subtotal: Optional[Decimal] = None,
    ) -> Optional[Decimal]:
        """Validate ``code`` for ``actor`` without side effects.

        Returns the discount that would apply to ``subtotal``, or ``None``
        when no subtotal was given.

        Raises:
            VoucherNotFound: unknown code.
            VoucherInvalid: the voucher cannot be applied.
        """
        voucher = self._repo.get_by_code(code)
        if voucher is None:
            raise VoucherNotFound(f"Voucher '{code}' not found.")

        uses = 0
        if self._usage_counter is not None and voucher.per_user_limit is not None:
            uses = self._usage_counter(voucher.code, actor.id)

        if subtotal is None:
            self._validator.validate(voucher, customer_uses=uses)
            return None
        return self._validator.discount_for(voucher, subtotal, customer_uses=uses)
