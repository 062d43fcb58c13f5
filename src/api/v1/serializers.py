"""Serializers for the Dropship Simulator API v1."""
from django.contrib.auth import get_user_model
from rest_framework import serializers

from catalog.models import Product
from ledger.models import LedgerTransaction, ProductAllocation
from metrics.models import BusinessMetrics
from missions.models import Mission
from stock.models import InventoryRecord

User = get_user_model()


# ---------------------------------------------------------------------------
# Accounts / catalog
# ---------------------------------------------------------------------------

class MeSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'business_name']
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    """Serializer for the owner's products."""

    margin = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'category', 'sku', 'description',
            'cost_price', 'selling_price', 'margin', 'is_active',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'margin', 'created_at', 'updated_at']

    def validate_cost_price(self, value):
        if value < 0:
            raise serializers.ValidationError('The cost price cannot be negative.')
        return value

    def validate_selling_price(self, value):
        if value < 0:
            raise serializers.ValidationError('The selling price cannot be negative.')
        return value


# ---------------------------------------------------------------------------
# Missions
# ---------------------------------------------------------------------------

class MissionSerializer(serializers.ModelSerializer):
    """Read-only serializer for missions."""

    class Meta:
        model = Mission
        fields = [
            'id', 'title', 'description', 'mission_type', 'status',
            'deadline', 'cost_to_solve', 'impact', 'event_source',
            'location', 'source_url', 'resolved_at', 'created_at',
        ]
        read_only_fields = fields


class LocationsSerializer(serializers.Serializer):
    locations = serializers.ListField(
        child=serializers.CharField(max_length=100),
        required=False,
        allow_empty=True,
    )


class MissionCreateSerializer(LocationsSerializer):
    auto_generate = serializers.BooleanField(required=False, default=True)


class MissionResolveSerializer(serializers.Serializer):
    # Validated by the lifecycle service so the error shape is the same
    # for API and non-API callers.
    action = serializers.CharField(required=False, allow_blank=True, default='')


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------

class LedgerTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = LedgerTransaction
        fields = [
            'id', 'transaction_type', 'amount', 'balance_after',
            'description', 'metadata', 'created_at',
        ]
        read_only_fields = fields


class ProductAllocationSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    remaining_budget = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = ProductAllocation
        fields = [
            'id', 'product', 'product_name', 'allocated_budget',
            'used_budget', 'remaining_budget', 'updated_at',
        ]
        read_only_fields = fields


class BudgetStatusSerializer(serializers.Serializer):
    total = serializers.DecimalField(max_digits=14, decimal_places=2)
    allocated = serializers.DecimalField(max_digits=14, decimal_places=2)
    used = serializers.DecimalField(max_digits=14, decimal_places=2)
    available = serializers.DecimalField(max_digits=14, decimal_places=2)
    allocations = ProductAllocationSerializer(many=True)
    recent_transactions = LedgerTransactionSerializer(many=True)


class AllocationLineSerializer(serializers.Serializer):
    # Kept as text: lines for unknown products are skipped, not rejected.
    product_id = serializers.CharField(max_length=64)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class AllocateBudgetSerializer(serializers.Serializer):
    allocations = AllocationLineSerializer(many=True, allow_empty=True)


class AddFundsSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------

class InventoryRecordSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    available_quantity = serializers.IntegerField(read_only=True)
    needs_restock = serializers.BooleanField(read_only=True)

    class Meta:
        model = InventoryRecord
        fields = [
            'id', 'product', 'product_name', 'sku', 'quantity',
            'reserved_quantity', 'available_quantity', 'reorder_point',
            'reorder_quantity', 'needs_restock', 'last_restocked_at',
        ]
        read_only_fields = fields


class RestockSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    sku = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    quantity = serializers.IntegerField()
    reorder_point = serializers.IntegerField(required=False, min_value=0)
    reorder_quantity = serializers.IntegerField(required=False, min_value=0)


class SkuConfigSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    sku = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    reorder_point = serializers.IntegerField(required=False, min_value=0)
    reorder_quantity = serializers.IntegerField(required=False, min_value=0)


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

class BusinessMetricsSerializer(serializers.ModelSerializer):
    class Meta:
        model = BusinessMetrics
        fields = [
            'revenue', 'expenses', 'profit', 'cash_flow',
            'financial_pressure', 'informational', 'last_applied_at',
        ]
        read_only_fields = fields
