import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="InventoryRecord",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("sku", models.CharField(max_length=50, verbose_name="SKU")),
                ("quantity", models.PositiveIntegerField(default=0, verbose_name="quantity in stock")),
                (
                    "reserved_quantity",
                    models.PositiveIntegerField(
                        default=0, help_text="Units held for pending orders.", verbose_name="reserved quantity",
                    ),
                ),
                (
                    "reorder_point",
                    models.PositiveIntegerField(
                        default=10,
                        help_text="Restock is suggested once quantity falls to this level.",
                        verbose_name="reorder point",
                    ),
                ),
                ("reorder_quantity", models.PositiveIntegerField(default=20, verbose_name="reorder quantity")),
                ("last_restocked_at", models.DateTimeField(blank=True, null=True, verbose_name="last restocked at")),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="inventory_records",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="owner",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="inventory_records",
                        to="catalog.product",
                        verbose_name="product",
                    ),
                ),
            ],
            options={
                "verbose_name": "inventory record",
                "verbose_name_plural": "inventory records",
                "ordering": ["product__name", "sku"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("owner", "product", "sku"), name="uniq_inventory_per_owner_product_sku",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("reserved_quantity__gte", 0), ("reserved_quantity__lte", models.F("quantity"))),
                        name="inventory_reserved_within_quantity",
                    ),
                ],
            },
        ),
    ]
