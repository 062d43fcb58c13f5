"""Models for the ledger app (wallet, transaction log, product allocations)."""
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from core.models import TimeStampedModel


# ---------------------------------------------------------------------------
# Wallet
# ---------------------------------------------------------------------------

class Wallet(TimeStampedModel):
    """The owner's unallocated cash. One per owner."""

    owner = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="wallet",
        verbose_name="owner",
    )
    balance = models.DecimalField(
        "balance",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    class Meta:
        verbose_name = "wallet"
        verbose_name_plural = "wallets"
        constraints = [
            models.CheckConstraint(
                condition=Q(balance__gte=0),
                name="wallet_balance_non_negative",
            ),
        ]

    def __str__(self):
        return f"Wallet of {self.owner} ({self.balance})"


# ---------------------------------------------------------------------------
# LedgerTransaction
# ---------------------------------------------------------------------------

class LedgerTransaction(TimeStampedModel):
    """An immutable entry of the owner's money log.

    ``amount`` is always a positive magnitude; the direction comes from
    ``transaction_type``.
    """

    class TransactionType(models.TextChoices):
        DEPOSIT = "deposit", "Deposit"
        ALLOCATION = "allocation", "Allocation"
        SPEND = "spend", "Spend"

    CREDIT_TYPES = frozenset({TransactionType.DEPOSIT})

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="ledger_transactions",
        verbose_name="owner",
    )
    wallet = models.ForeignKey(
        Wallet,
        on_delete=models.PROTECT,
        related_name="transactions",
        verbose_name="wallet",
    )
    transaction_type = models.CharField(
        "type",
        max_length=20,
        choices=TransactionType.choices,
        db_index=True,
    )
    amount = models.DecimalField("amount", max_digits=14, decimal_places=2)
    balance_after = models.DecimalField(
        "balance after",
        max_digits=14,
        decimal_places=2,
        help_text="Wallet balance right after this entry.",
    )
    description = models.CharField("description", max_length=255, blank=True, default="")
    metadata = models.JSONField("metadata", default=dict, blank=True)

    class Meta:
        verbose_name = "ledger transaction"
        verbose_name_plural = "ledger transactions"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["owner", "created_at"], name="ledger_owner_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="ledger_amount_positive",
            ),
        ]

    def __str__(self):
        return f"{self.get_transaction_type_display()} {self.amount} (balance: {self.balance_after})"

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign it applies to the wallet balance."""
        if self.transaction_type in self.CREDIT_TYPES:
            return self.amount
        return -self.amount


# ---------------------------------------------------------------------------
# ProductAllocation
# ---------------------------------------------------------------------------

class ProductAllocation(TimeStampedModel):
    """Budget earmarked from the wallet for one product."""

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="allocations",
        verbose_name="owner",
    )
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.CASCADE,
        related_name="allocations",
        verbose_name="product",
    )
    allocated_budget = models.DecimalField(
        "allocated budget",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    used_budget = models.DecimalField(
        "used budget",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    class Meta:
        verbose_name = "product allocation"
        verbose_name_plural = "product allocations"
        ordering = ["-updated_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "product"],
                name="uniq_allocation_per_owner_product",
            ),
            models.CheckConstraint(
                condition=Q(used_budget__gte=0) & Q(used_budget__lte=F("allocated_budget")),
                name="allocation_used_within_allocated",
            ),
        ]

    def __str__(self):
        return f"{self.product} - {self.used_budget}/{self.allocated_budget}"

    @property
    def remaining_budget(self) -> Decimal:
        return self.allocated_budget - self.used_budget
