"""Business logic / service functions for stock management."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from catalog.services import get_owned_product
from core.exceptions import NotFound, ValidationFailed
from core.services import create_audit_log
from ledger import services as ledger

from .models import InventoryRecord

logger = logging.getLogger("simulator")


@dataclass
class RestockResult:
    """Result payload for a restock."""

    restock_cost: Decimal
    new_quantity: int
    new_balance: Decimal
    record: InventoryRecord


def _clean_sku(sku) -> str:
    sku = (sku or "").strip()
    if not sku:
        raise ValidationFailed("A SKU is required.")
    return sku


def _positive_int(value, label="quantity") -> int:
    try:
        qty = int(value)
    except (TypeError, ValueError):
        raise ValidationFailed(f"Invalid {label}: {value!r}.")
    if qty <= 0:
        raise ValidationFailed(f"The {label} must be greater than 0.")
    return qty


def _lock_record(owner, product, sku) -> InventoryRecord:
    try:
        return InventoryRecord.objects.select_for_update().get(
            owner=owner, product=product, sku=sku,
        )
    except InventoryRecord.DoesNotExist:
        raise NotFound(f"No inventory record for {product} with SKU {sku}.")


# ---------------------------------------------------------------------------
# restock_inventory
# ---------------------------------------------------------------------------

@transaction.atomic
def restock_inventory(
    owner,
    product_id,
    sku,
    quantity,
    reorder_point=None,
    reorder_quantity=None,
) -> RestockResult:
    """
    Buy ``quantity`` units of a product from the wallet.

    The wallet is debited *before* the inventory row is touched, so an
    ``InsufficientFunds`` refusal leaves both ledger and stock unchanged.
    Quantities add up across restocks. The product's SKU is filled in
    only while it is still blank.

    Raises:
        ValidationFailed: blank SKU or non-positive quantity.
        NotFound: the product does not belong to the owner.
        InsufficientFunds: the wallet cannot cover quantity x cost price.
    """
    sku = _clean_sku(sku)
    quantity = _positive_int(quantity)
    product = get_owned_product(owner, product_id)

    cost = (product.cost_price * quantity).quantize(Decimal("0.01"))
    new_balance = ledger.get_or_create_wallet(owner).balance
    if cost > 0:
        entry = ledger.debit(
            owner,
            cost,
            f"Restocked {quantity} units of SKU {sku} for {product.name}",
            {
                "product_id": str(product.pk),
                "sku": sku,
                "quantity": quantity,
                "cost": str(cost),
            },
        )
        new_balance = entry.balance_after

    defaults = {"quantity": 0}
    if reorder_point is not None:
        defaults["reorder_point"] = reorder_point
    if reorder_quantity is not None:
        defaults["reorder_quantity"] = reorder_quantity
    record, _created = InventoryRecord.objects.select_for_update().get_or_create(
        owner=owner,
        product=product,
        sku=sku,
        defaults=defaults,
    )
    record.quantity += quantity
    record.last_restocked_at = timezone.now()
    record.save(update_fields=["quantity", "last_restocked_at", "updated_at"])

    if not product.sku:
        product.sku = sku
        product.save(update_fields=["sku", "updated_at"])

    create_audit_log(
        actor=owner,
        action="INVENTORY_RESTOCKED",
        entity_type="InventoryRecord",
        entity_id=record.pk,
        after={"sku": sku, "quantity": quantity, "cost": str(cost)},
    )
    logger.info(
        "Restocked %s x %s [%s] for owner %s (cost=%s, balance=%s)",
        quantity, product, sku, owner.pk, cost, new_balance,
    )
    return RestockResult(
        restock_cost=cost,
        new_quantity=record.quantity,
        new_balance=new_balance,
        record=record,
    )


# ---------------------------------------------------------------------------
# update_sku_config
# ---------------------------------------------------------------------------

@transaction.atomic
def update_sku_config(owner, product_id, sku, reorder_point=None, reorder_quantity=None) -> InventoryRecord:
    """Create or update the reorder settings of a SKU. Never touches money."""
    sku = _clean_sku(sku)
    product = get_owned_product(owner, product_id)

    record, _created = InventoryRecord.objects.select_for_update().get_or_create(
        owner=owner,
        product=product,
        sku=sku,
        defaults={"quantity": 0},
    )
    changed = []
    if reorder_point is not None:
        record.reorder_point = int(reorder_point)
        changed.append("reorder_point")
    if reorder_quantity is not None:
        record.reorder_quantity = int(reorder_quantity)
        changed.append("reorder_quantity")
    if changed:
        record.save(update_fields=changed + ["updated_at"])

    if not product.sku:
        product.sku = sku
        product.save(update_fields=["sku", "updated_at"])

    logger.info("SKU %s of %s configured for owner %s", sku, product, owner.pk)
    return record


# ---------------------------------------------------------------------------
# Reservations and deductions
# ---------------------------------------------------------------------------

@transaction.atomic
def reserve_stock(owner, product, sku, qty) -> InventoryRecord:
    """Hold ``qty`` units for a pending order."""
    qty = _positive_int(qty)
    record = _lock_record(owner, product, sku)

    if record.available_quantity < qty:
        raise ValidationFailed(
            f"Not enough stock to reserve {qty} x {product} [{sku}]. "
            f"Available: {record.available_quantity}."
        )

    record.reserved_quantity += qty
    record.save(update_fields=["reserved_quantity", "updated_at"])
    logger.info("Stock reserved: %s [%s] +%d for owner %s", product, sku, qty, owner.pk)
    return record


@transaction.atomic
def release_stock(owner, product, sku, qty) -> InventoryRecord:
    """Give back previously reserved units."""
    qty = _positive_int(qty)
    record = _lock_record(owner, product, sku)

    if record.reserved_quantity < qty:
        raise ValidationFailed(
            f"Cannot release {qty} x {product} [{sku}]. "
            f"Only {record.reserved_quantity} reserved."
        )

    record.reserved_quantity -= qty
    record.save(update_fields=["reserved_quantity", "updated_at"])
    logger.info("Stock released: %s [%s] -%d for owner %s", product, sku, qty, owner.pk)
    return record


@transaction.atomic
def deduct_stock(owner, product, sku, qty) -> InventoryRecord:
    """Remove sold units. Reserved units are never deducted."""
    qty = _positive_int(qty)
    record = _lock_record(owner, product, sku)

    if record.available_quantity < qty:
        raise ValidationFailed(
            f"Insufficient inventory for {product} [{sku}]. "
            f"Available: {record.available_quantity}, requested: {qty}."
        )

    record.quantity -= qty
    record.save(update_fields=["quantity", "updated_at"])
    logger.info("Stock deducted: %s [%s] -%d for owner %s", product, sku, qty, owner.pk)
    return record


def list_inventory(owner, product_id=None):
    """Return the owner's inventory records, optionally for one product."""
    qs = InventoryRecord.objects.filter(owner=owner).select_related("product")
    if product_id:
        qs = qs.filter(product_id=product_id)
    return qs.order_by("product__name", "sku")
