# purchases/views.py

from django.db.models import Count, Q, Sum
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import HasActionPermission
from inventory.ledger import StockLedger
from inventory.serializers import VoidSerializer, build_lines
from .models import Purchase
from .serializers import PurchaseCreateSerializer, PurchaseSerializer


class PurchaseViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Compras a proveedor. No se editan ni se borran: solo se anulan.
    Rutas: /api/purchases/, /api/purchases/{id}/void/, /api/purchases/stats/
    """
    queryset = Purchase.objects.all().select_related('supplier', 'created_by').prefetch_related(
        'lines__product', 'lines__size'
    )
    serializer_class = PurchaseSerializer
    lookup_value_regex = r'\d+'
    permission_classes = [IsAuthenticated, HasActionPermission]
    required_permissions = {
        'list': 'ver_compras',
        'retrieve': 'ver_compras',
        'create': 'crear_compras',
        'void': 'anular_compras',
        'stats': 'ver_compras',
    }
    filterset_fields = ['supplier', 'is_active']
    search_fields = ['supplier__name', 'supplier__document_number']
    ordering_fields = ['created_at', 'total']

    def get_serializer_class(self):
        if self.action == 'create':
            return PurchaseCreateSerializer
        if self.action == 'void':
            return VoidSerializer
        return PurchaseSerializer

    def create(self, request, *args, **kwargs):
        """POST /api/purchases/ - Registra la compra y suma stock."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = StockLedger(user=request.user).record_purchase(
            supplier_id=data['supplier_id'],
            lines=build_lines(data['items']),
            payment_method=data.get('payment_method', ''),
        )
        return Response({"id": result.id, "total": str(result.total)}, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def void(self, request, pk=None):
        """POST /api/purchases/{id}/void/ - Anula la compra y descuenta su stock."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        StockLedger(user=request.user).void_purchase(pk, serializer.validated_data['reason'])
        purchase = self.get_queryset().get(pk=pk)
        return Response(PurchaseSerializer(purchase).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        """GET /api/purchases/stats/ - Totales de compras activas y anuladas."""
        data = Purchase.objects.aggregate(
            count=Count('id'),
            active=Count('id', filter=Q(is_active=True)),
            voided=Count('id', filter=Q(is_active=False)),
            invested=Sum('total', filter=Q(is_active=True)),
        )
        data['invested'] = str(data['invested'] or 0)
        return Response(data, status=status.HTTP_200_OK)
