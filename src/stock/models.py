"""Models for the stock management app."""
from django.conf import settings
from django.db import models
from django.db.models import F, Q

from core.models import TimeStampedModel


class InventoryRecord(TimeStampedModel):
    """Stock level of one SKU of an owner's product."""

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="inventory_records",
        verbose_name="owner",
    )
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.PROTECT,
        related_name="inventory_records",
        verbose_name="product",
    )
    sku = models.CharField("SKU", max_length=50)
    quantity = models.PositiveIntegerField("quantity in stock", default=0)
    reserved_quantity = models.PositiveIntegerField(
        "reserved quantity",
        default=0,
        help_text="Units held for pending orders.",
    )
    reorder_point = models.PositiveIntegerField(
        "reorder point",
        default=10,
        help_text="Restock is suggested once quantity falls to this level.",
    )
    reorder_quantity = models.PositiveIntegerField("reorder quantity", default=20)
    last_restocked_at = models.DateTimeField("last restocked at", null=True, blank=True)

    class Meta:
        ordering = ["product__name", "sku"]
        verbose_name = "inventory record"
        verbose_name_plural = "inventory records"
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "product", "sku"],
                name="uniq_inventory_per_owner_product_sku",
            ),
            models.CheckConstraint(
                condition=Q(reserved_quantity__gte=0) & Q(reserved_quantity__lte=F("quantity")),
                name="inventory_reserved_within_quantity",
            ),
        ]

    @property
    def available_quantity(self):
        """Quantity that can still be sold (total minus reserved)."""
        return self.quantity - self.reserved_quantity

    @property
    def needs_restock(self):
        """True once the quantity is at or below the reorder point."""
        return self.quantity <= self.reorder_point

    def __str__(self):
        return f"{self.product} [{self.sku}] - {self.quantity} in stock"
