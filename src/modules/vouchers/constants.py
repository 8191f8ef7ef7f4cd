from django.db import models


class VoucherType(models.TextChoices):
    PERCENTAGE = "PERCENTAGE", "Percentage"
    FIXED_AMOUNT = "FIXED_AMOUNT", "Fixed amount"
    FREE_SHIPPING = "FREE_SHIPPING", "Free shipping"
