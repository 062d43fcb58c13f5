"""Models for the catalog app (the owner's dropshipped products)."""
from decimal import Decimal

from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


class Product(TimeStampedModel):
    """A product listed by one owner's store."""

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="products",
        verbose_name="owner",
    )
    name = models.CharField("name", max_length=255)
    category = models.CharField("category", max_length=100, blank=True, default="")
    sku = models.CharField(
        "SKU",
        max_length=50,
        blank=True,
        default="",
        help_text="Filled by the first restock when left blank.",
    )
    description = models.TextField("description", blank=True, default="")
    cost_price = models.DecimalField(
        "cost price",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    selling_price = models.DecimalField(
        "selling price",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    is_active = models.BooleanField("active", default=True)

    class Meta:
        verbose_name = "product"
        verbose_name_plural = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["owner", "sku"], name="product_owner_sku_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})" if self.sku else self.name

    # ------------------------------------------------------------------
    # Computed properties
    # ------------------------------------------------------------------

    @property
    def margin(self) -> Decimal:
        """Absolute margin: selling_price - cost_price."""
        return self.selling_price - self.cost_price

    @property
    def margin_percent(self) -> Decimal:
        """Margin expressed as a percentage of the selling price."""
        if self.selling_price:
            return (self.margin / self.selling_price) * Decimal("100")
        return Decimal("0.00")
