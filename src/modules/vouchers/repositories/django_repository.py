"""Django ORM implementation of the Voucher repository."""

from __future__ import annotations

from typing import Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F

from modules.vouchers.models import Voucher
from modules.vouchers.repositories.interfaces import IVoucherRepository

logger = structlog.get_logger(__name__)


def _normalise(code: str) -> str:
    return code.strip().upper()


class VoucherDjangoRepository(IVoucherRepository):
    def get_by_id(self, id: str) -> Optional[Voucher]:
        try:
            return Voucher.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_code(self, code: str) -> Optional[Voucher]:
        return Voucher.objects.filter(code=_normalise(code)).first()

    def get_by_code_for_update(self, code: str) -> Optional[Voucher]:
        return (
            Voucher.objects.select_for_update()
            .filter(code=_normalise(code))
            .first()
        )

    def increment_usage(self, voucher: Voucher) -> None:
        Voucher.objects.filter(id=voucher.id).update(
            usage_count=F("usage_count") + 1
        )
        voucher.refresh_from_db(fields=["usage_count"])
        logger.info(
            "voucher.used",
            code=voucher.code,
            usage_count=voucher.usage_count,
        )

    def list(self, seller_id: Optional[str] = None) -> "models.QuerySet[Voucher]":
        queryset = Voucher.objects.all()
        if seller_id is not None:
            queryset = queryset.filter(seller_id=seller_id)
        return queryset

    def save(self, entity: Voucher) -> Voucher:
        entity.save()
        return entity
