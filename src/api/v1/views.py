"""ViewSets and API views for the Dropship Simulator API v1.

Every endpoint is scoped to ``request.user``; services raise domain errors
which ``api.exceptions.domain_exception_handler`` turns into responses.
"""
from django.db.models import ProtectedError
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from catalog.models import Product
from core.exceptions import Conflict
from ledger import services as ledger_services
from ledger.models import LedgerTransaction
from metrics.services import get_business_metrics
from missions import services as mission_services
from stock import services as stock_services

from api.v1.serializers import (
    AddFundsSerializer,
    AllocateBudgetSerializer,
    BudgetStatusSerializer,
    BusinessMetricsSerializer,
    InventoryRecordSerializer,
    LedgerTransactionSerializer,
    LocationsSerializer,
    MeSerializer,
    MissionCreateSerializer,
    MissionResolveSerializer,
    MissionSerializer,
    ProductSerializer,
    RestockSerializer,
    SkuConfigSerializer,
)


class MeView(APIView):
    """Return the authenticated owner's profile."""

    def get(self, request):
        return Response(MeSerializer(request.user).data)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class ProductViewSet(viewsets.ModelViewSet):
    """CRUD for the owner's products."""

    serializer_class = ProductSerializer
    queryset = Product.objects.all()
    filterset_fields = ['is_active', 'category']
    ordering_fields = ['name', 'cost_price', 'selling_price', 'created_at']

    def get_queryset(self):
        return super().get_queryset().filter(owner=self.request.user)

    def perform_create(self, serializer):
        serializer.save(owner=self.request.user)

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError:
            raise Conflict('This product has inventory records and cannot be deleted.')


# ---------------------------------------------------------------------------
# Missions
# ---------------------------------------------------------------------------

class MissionViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Missions of the authenticated owner.

    Missions are never deleted or edited directly: they are created from
    events and change status only through ``resolve`` or the deadline sweep.
    """

    serializer_class = MissionSerializer
    ordering_fields = ['created_at', 'deadline', 'cost_to_solve']

    def get_queryset(self):
        if self.action == 'list':
            return mission_services.list_missions(
                self.request.user,
                status=self.request.query_params.get('status') or None,
            )
        return mission_services.list_missions(self.request.user)

    def create(self, request, *args, **kwargs):
        """Create a single mission picked at random."""
        ser = MissionCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        mission = mission_services.create_random_mission(
            request.user,
            locations=ser.validated_data.get('locations') or None,
            auto_generate=ser.validated_data['auto_generate'],
        )
        return Response(MissionSerializer(mission).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'], url_path='generate')
    def generate(self, request):
        """Create a batch of missions from current events."""
        ser = LocationsSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        missions = mission_services.create_missions_from_events(
            request.user,
            locations=ser.validated_data.get('locations') or None,
        )
        return Response(
            {
                'missions': MissionSerializer(missions, many=True).data,
                'message': f'Generated {len(missions)} new mission(s)',
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=['get'], url_path='candidates')
    def candidates(self, request):
        """Preview the templates the event sources would offer right now."""
        raw = request.query_params.get('locations', '')
        locations = [loc.strip() for loc in raw.split(',') if loc.strip()] or None
        templates = mission_services.preview_candidates(locations)
        return Response({'candidates': [t.as_dict() for t in templates]})

    @action(detail=True, methods=['post'], url_path='resolve')
    def resolve(self, request, pk=None):
        """Solve (pay) or fail an active mission."""
        ser = MissionResolveSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = mission_services.resolve_mission(
            request.user, pk, ser.validated_data['action'],
        )
        return Response({
            'mission': MissionSerializer(result.mission).data,
            'new_balance': result.new_balance,
            'message': result.message,
        })


# ---------------------------------------------------------------------------
# Budget / ledger
# ---------------------------------------------------------------------------

class BudgetViewSet(viewsets.GenericViewSet):
    """Wallet, allocations and transaction log of the authenticated owner."""

    serializer_class = LedgerTransactionSerializer

    def get_queryset(self):
        return LedgerTransaction.objects.filter(owner=self.request.user).order_by('-created_at')

    def list(self, request):
        """Current budget status. Never cached."""
        budget = ledger_services.get_budget_status(request.user)
        return Response(BudgetStatusSerializer(budget).data)

    @action(detail=False, methods=['post'], url_path='allocate')
    def allocate(self, request):
        ser = AllocateBudgetSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = ledger_services.allocate_budget(
            request.user, ser.validated_data['allocations'],
        )
        total = sum((line['amount'] for line in ser.validated_data['allocations']), 0)
        return Response({
            'remaining_budget': result.remaining_budget,
            'applied_lines': result.applied_lines,
            'message': f'{total} allocated to {len(result.applied_lines)} product(s)',
        })

    @action(detail=False, methods=['post'], url_path='add-funds')
    def add_funds(self, request):
        ser = AddFundsSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        entry = ledger_services.add_funds(request.user, ser.validated_data['amount'])
        return Response({
            'new_balance': entry.balance_after,
            'transaction': LedgerTransactionSerializer(entry).data,
            'message': f'{entry.amount} added to your wallet',
        })

    @action(detail=False, methods=['get'], url_path='transactions')
    def transactions(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)
        return Response(self.get_serializer(queryset, many=True).data)


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------

class InventoryViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """Inventory records with derived availability and restock flags."""

    serializer_class = InventoryRecordSerializer
    filterset_fields = ['product', 'sku']
    ordering_fields = ['quantity', 'product__name', 'reserved_quantity', 'reorder_point']

    def get_queryset(self):
        return stock_services.list_inventory(self.request.user)

    @action(detail=False, methods=['post'], url_path='restock')
    def restock(self, request):
        ser = RestockSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        result = stock_services.restock_inventory(
            request.user,
            d['product_id'],
            d['sku'],
            d['quantity'],
            reorder_point=d.get('reorder_point'),
            reorder_quantity=d.get('reorder_quantity'),
        )
        return Response({
            'restock_cost': result.restock_cost,
            'new_quantity': result.new_quantity,
            'new_balance': result.new_balance,
            'record': InventoryRecordSerializer(result.record).data,
            'message': f"Restocked {d['quantity']} units of SKU {result.record.sku}",
        })

    @action(detail=False, methods=['post'], url_path='configure')
    def configure(self, request):
        ser = SkuConfigSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        record = stock_services.update_sku_config(
            request.user,
            d['product_id'],
            d['sku'],
            reorder_point=d.get('reorder_point'),
            reorder_quantity=d.get('reorder_quantity'),
        )
        return Response(InventoryRecordSerializer(record).data)


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

class BusinessMetricsView(APIView):
    """Current business KPIs of the authenticated owner."""

    def get(self, request):
        metrics = get_business_metrics(request.user)
        return Response(BusinessMetricsSerializer(metrics).data)
