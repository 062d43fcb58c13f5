"""Business logic for the ledger app.

Every balance-modifying operation runs in one ``transaction.atomic`` block
and locks the owner's wallet row with ``select_for_update()`` first, so
concurrent requests for the same owner are serialized on that row.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import transaction
from django.db.models import DecimalField, Sum, Value
from django.db.models.functions import Coalesce

from catalog.models import Product
from core.exceptions import InsufficientFunds, ValidationFailed
from core.services import create_audit_log

from .models import LedgerTransaction, ProductAllocation, Wallet

logger = logging.getLogger("simulator")

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")


@dataclass
class AllocationResult:
    """Result payload for a budget allocation batch."""

    remaining_budget: Decimal
    applied_lines: list[dict]


@dataclass
class BudgetStatus:
    """Read-only projection of an owner's money."""

    total: Decimal
    allocated: Decimal
    used: Decimal
    available: Decimal
    allocations: list[ProductAllocation] = field(default_factory=list)
    recent_transactions: list[LedgerTransaction] = field(default_factory=list)


def to_amount(value, label: str = "amount") -> Decimal:
    """Parse ``value`` into a strictly positive two-decimal amount."""
    try:
        amount = Decimal(str(value)).quantize(CENTS)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationFailed(f"Invalid {label}: {value!r}.")
    if not amount.is_finite() or amount <= 0:
        raise ValidationFailed(f"The {label} must be greater than 0.")
    return amount


# ---------------------------------------------------------------------------
# Wallet access
# ---------------------------------------------------------------------------

def get_or_create_wallet(owner) -> Wallet:
    """Return the owner's wallet, creating an empty one on first access."""
    wallet, _created = Wallet.objects.get_or_create(
        owner=owner,
        defaults={"balance": ZERO},
    )
    return wallet


def _lock_wallet(owner) -> Wallet:
    wallet = get_or_create_wallet(owner)
    return Wallet.objects.select_for_update().get(pk=wallet.pk)


def _is_uuid(value) -> bool:
    try:
        uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return False
    return True


def _append(wallet, transaction_type, amount, description, metadata) -> LedgerTransaction:
    return LedgerTransaction.objects.create(
        owner_id=wallet.owner_id,
        wallet=wallet,
        transaction_type=transaction_type,
        amount=amount,
        balance_after=wallet.balance,
        description=description[:255],
        metadata=metadata or {},
    )


# ---------------------------------------------------------------------------
# debit / credit
# ---------------------------------------------------------------------------

@transaction.atomic
def debit(owner, amount, description: str, metadata: dict | None = None) -> LedgerTransaction:
    """Take ``amount`` out of the owner's wallet and log a spend.

    Raises
    ------
    ValidationFailed
        When the amount is not strictly positive.
    InsufficientFunds
        When the wallet balance is lower than the amount. Nothing is
        written in that case.
    """
    amount = to_amount(amount)
    wallet = _lock_wallet(owner)

    if wallet.balance < amount:
        logger.info(
            "Debit refused for owner %s: %s requested, %s available",
            owner.pk, amount, wallet.balance,
        )
        raise InsufficientFunds(requested=amount, available=wallet.balance)

    wallet.balance -= amount
    wallet.save(update_fields=["balance", "updated_at"])
    entry = _append(
        wallet, LedgerTransaction.TransactionType.SPEND, amount, description, metadata,
    )
    logger.info("Debited %s from owner %s (balance: %s)", amount, owner.pk, wallet.balance)
    return entry


@transaction.atomic
def credit(owner, amount, description: str, metadata: dict | None = None) -> LedgerTransaction:
    """Put ``amount`` into the owner's wallet and log a deposit."""
    amount = to_amount(amount)
    wallet = _lock_wallet(owner)

    wallet.balance += amount
    wallet.save(update_fields=["balance", "updated_at"])
    entry = _append(
        wallet, LedgerTransaction.TransactionType.DEPOSIT, amount, description, metadata,
    )
    logger.info("Credited %s to owner %s (balance: %s)", amount, owner.pk, wallet.balance)
    return entry


def add_funds(owner, amount) -> LedgerTransaction:
    """Top up the wallet (the user-facing deposit)."""
    amount = to_amount(amount)
    return credit(
        owner,
        amount,
        f"Added {amount} {settings.CURRENCY} to wallet",
        {"source": "add_funds"},
    )


# ---------------------------------------------------------------------------
# allocate_budget
# ---------------------------------------------------------------------------

@transaction.atomic
def allocate_budget(owner, lines) -> AllocationResult:
    """Earmark wallet money for products.

    ``lines`` is an iterable of ``{"product_id": ..., "amount": ...}``.
    Each applied line *replaces* the product's allocated budget, and a
    product may appear only once per batch. Lines for products the owner
    does not own are skipped without failing the batch.
    The wallet is charged the sum of the applied lines and a single
    allocation transaction summarises them.
    """
    lines = list(lines or [])
    if not lines:
        raise ValidationFailed("At least one allocation line is required.")

    parsed = []
    seen = set()
    for line in lines:
        product_id = line.get("product_id")
        if not product_id:
            raise ValidationFailed("Each allocation line needs a product_id.")
        key = str(product_id).strip().lower()
        if key in seen:
            raise ValidationFailed(f"Product {product_id} appears more than once in the batch.")
        seen.add(key)
        parsed.append((product_id, to_amount(line.get("amount"))))

    requested = sum((amount for _pid, amount in parsed), ZERO)
    wallet = _lock_wallet(owner)
    if requested > wallet.balance:
        raise InsufficientFunds(requested=requested, available=wallet.balance)

    owned = {
        str(p.pk): p
        for p in Product.objects.filter(
            owner=owner, pk__in=[pid for pid, _amount in parsed if _is_uuid(pid)],
        )
    }

    applied: list[dict] = []
    charged = ZERO
    for product_id, amount in parsed:
        product = owned.get(str(product_id))
        if product is None:
            logger.info("Allocation line skipped: product %s is not owned by %s", product_id, owner.pk)
            continue

        allocation, _created = (
            ProductAllocation.objects
            .select_for_update()
            .get_or_create(owner=owner, product=product)
        )
        if amount < allocation.used_budget:
            raise ValidationFailed(
                f"Allocation for {product.name} cannot go below the "
                f"{allocation.used_budget} already used."
            )
        allocation.allocated_budget = amount
        allocation.save(update_fields=["allocated_budget", "updated_at"])

        charged += amount
        applied.append({
            "product_id": str(product.pk),
            "product_name": product.name,
            "amount": str(amount),
        })

    if charged > 0:
        wallet.balance -= charged
        wallet.save(update_fields=["balance", "updated_at"])
        entry = _append(
            wallet,
            LedgerTransaction.TransactionType.ALLOCATION,
            charged,
            f"Allocated {charged} {settings.CURRENCY} to {len(applied)} product(s)",
            {"allocations": applied},
        )
        create_audit_log(
            actor=owner,
            action="BUDGET_ALLOCATED",
            entity_type="LedgerTransaction",
            entity_id=entry.pk,
            after={"amount": str(charged), "allocations": applied},
        )
        logger.info("Allocated %s across %d product(s) for owner %s", charged, len(applied), owner.pk)

    return AllocationResult(remaining_budget=wallet.balance, applied_lines=applied)


# ---------------------------------------------------------------------------
# record_allocation_usage
# ---------------------------------------------------------------------------

@transaction.atomic
def record_allocation_usage(owner, product, amount) -> ProductAllocation:
    """Consume part of a product's allocated budget.

    Raises ``InsufficientFunds`` when the remaining allocation cannot
    cover the amount, so ``used_budget`` never exceeds ``allocated_budget``.
    """
    amount = to_amount(amount)
    try:
        allocation = (
            ProductAllocation.objects
            .select_for_update()
            .get(owner=owner, product=product)
        )
    except ProductAllocation.DoesNotExist:
        raise InsufficientFunds(requested=amount, available=ZERO)

    if allocation.used_budget + amount > allocation.allocated_budget:
        raise InsufficientFunds(requested=amount, available=allocation.remaining_budget)

    allocation.used_budget += amount
    allocation.save(update_fields=["used_budget", "updated_at"])
    logger.info("Used %s of the %s allocation for owner %s", amount, product, owner.pk)
    return allocation


# ---------------------------------------------------------------------------
# Read side
# ---------------------------------------------------------------------------

def get_budget_status(owner, recent: int | None = None) -> BudgetStatus:
    """Project the wallet and allocations into totals.

    ``total`` is every unit of money committed to the business, whether
    earmarked or not, so ``available`` equals the unallocated wallet balance.
    """
    if recent is None:
        recent = settings.RECENT_TRANSACTIONS_LIMIT
    wallet = get_or_create_wallet(owner)
    allocations = list(
        ProductAllocation.objects
        .filter(owner=owner)
        .select_related("product")
    )
    money = DecimalField(max_digits=14, decimal_places=2)
    sums = ProductAllocation.objects.filter(owner=owner).aggregate(
        allocated=Coalesce(Sum("allocated_budget"), Value(ZERO), output_field=money),
        used=Coalesce(Sum("used_budget"), Value(ZERO), output_field=money),
    )
    allocated = sums["allocated"]
    total = wallet.balance + allocated
    recent_transactions = list(
        LedgerTransaction.objects.filter(owner=owner).order_by("-created_at")[:recent]
    )
    return BudgetStatus(
        total=total,
        allocated=allocated,
        used=sums["used"],
        available=total - allocated,
        allocations=allocations,
        recent_transactions=recent_transactions,
    )


def replay_balance(owner) -> Decimal:
    """Fold the owner's transaction log back into a wallet balance."""
    balance = ZERO
    for entry in LedgerTransaction.objects.filter(owner=owner).order_by("created_at"):
        balance += entry.signed_amount
    return balance
