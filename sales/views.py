# sales/views.py

from django.db.models import Count, Q, Sum
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import HasActionPermission, crud_permissions
from inventory.ledger import StockLedger
from inventory.serializers import VoidSerializer, build_lines
from .models import Client, Return, Sale
from .serializers import (
    ClientSerializer,
    ReturnCreateSerializer,
    ReturnSerializer,
    SaleCreateSerializer,
    SaleSerializer,
)


# ----------------------------------------------------
# A. Clientes (ViewSet)
# ----------------------------------------------------

class ClientViewSet(viewsets.ModelViewSet):
    """
    CRUD de Clientes (API).
    Rutas: /api/clients/
    """
    queryset = Client.objects.all()
    serializer_class = ClientSerializer
    permission_classes = [IsAuthenticated, HasActionPermission]
    required_permissions = crud_permissions('clientes')
    filterset_fields = ['is_active', 'document_type', 'city']
    search_fields = ['name', 'document', 'email']

    def perform_destroy(self, instance):
        """Un cliente con ventas no se borra: se desactiva."""
        if instance.sales.exists():
            instance.is_active = False
            instance.save(update_fields=['is_active'])
        else:
            instance.delete()


# ----------------------------------------------------
# B. Ventas (ViewSet)
# ----------------------------------------------------

class SaleViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Ventas. No se editan ni se borran: solo se anulan.
    Rutas: /api/sales/, /api/sales/{id}/void/, /api/sales/stats/
    """
    queryset = Sale.objects.all().select_related('client', 'created_by').prefetch_related(
        'lines__product', 'lines__size'
    )
    serializer_class = SaleSerializer
    lookup_value_regex = r'\d+'
    permission_classes = [IsAuthenticated, HasActionPermission]
    required_permissions = {
        'list': 'ver_ventas',
        'retrieve': 'ver_ventas',
        'create': 'crear_ventas',
        'void': 'anular_ventas',
        'stats': 'ver_ventas',
    }
    filterset_fields = ['client', 'status', 'payment_method']
    search_fields = ['client__name', 'client__document']
    ordering_fields = ['created_at', 'total']

    def get_queryset(self):
        queryset = super().get_queryset()
        date_from = self.request.query_params.get('date_from')
        date_to = self.request.query_params.get('date_to')
        if date_from:
            queryset = queryset.filter(created_at__date__gte=date_from)
        if date_to:
            queryset = queryset.filter(created_at__date__lte=date_to)
        return queryset

    def get_serializer_class(self):
        if self.action == 'create':
            return SaleCreateSerializer
        if self.action == 'void':
            return VoidSerializer
        return SaleSerializer

    def create(self, request, *args, **kwargs):
        """POST /api/sales/ - Registra la venta y descuenta stock."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = StockLedger(user=request.user).record_sale(
            client_id=data['client_id'],
            lines=build_lines(data['items']),
            payment_method=data.get('payment_method') or None,
        )
        return Response({"id": result.id, "total": str(result.total)}, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def void(self, request, pk=None):
        """POST /api/sales/{id}/void/ - Anula la venta y devuelve el stock."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        StockLedger(user=request.user).void_sale(pk, serializer.validated_data['reason'])
        sale = Sale.objects.select_related('client').prefetch_related('lines').get(pk=pk)
        return Response(SaleSerializer(sale).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        """GET /api/sales/stats/ - Conteos por estado e ingresos de ventas completadas."""
        data = Sale.objects.aggregate(
            count=Count('id'),
            completed=Count('id', filter=Q(status=Sale.Status.COMPLETED)),
            pending=Count('id', filter=Q(status=Sale.Status.PENDING)),
            voided=Count('id', filter=Q(status=Sale.Status.VOIDED)),
            revenue=Sum('total', filter=Q(status=Sale.Status.COMPLETED)),
        )
        data['revenue'] = str(data['revenue'] or 0)
        return Response(data, status=status.HTTP_200_OK)


# ----------------------------------------------------
# C. Devoluciones (ViewSet)
# ----------------------------------------------------

class ReturnViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Devoluciones de ventas.
    Rutas: /api/returns/, /api/returns/{id}/toggle/, /api/returns/stats/
    """
    queryset = Return.objects.all().select_related('sale__client', 'product', 'size').prefetch_related(
        'status_changes__changed_by'
    )
    serializer_class = ReturnSerializer
    lookup_value_regex = r'\d+'
    permission_classes = [IsAuthenticated, HasActionPermission]
    required_permissions = {
        'list': 'ver_devoluciones',
        'retrieve': 'ver_devoluciones',
        'create': 'crear_devoluciones',
        'toggle': 'cambiar_estado_devoluciones',
        'stats': 'ver_devoluciones',
    }
    filterset_fields = ['sale', 'product', 'is_active']
    search_fields = ['reason', 'product__name']
    ordering_fields = ['created_at', 'amount']

    def get_serializer_class(self):
        if self.action == 'create':
            return ReturnCreateSerializer
        return ReturnSerializer

    def create(self, request, *args, **kwargs):
        """POST /api/returns/ - Registra la devolución y reingresa el stock."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = StockLedger(user=request.user).record_return(
            sale_id=data['sale_id'],
            product_id=data['product_id'],
            quantity=data['quantity'],
            reason=data['reason'],
            size_id=data.get('size_id'),
        )
        return Response({"id": result.id, "amount": str(result.total)}, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def toggle(self, request, pk=None):
        """POST /api/returns/{id}/toggle/ - Activa/desactiva la devolución moviendo stock."""
        StockLedger(user=request.user).toggle_return_status(pk)
        return_order = self.get_queryset().get(pk=pk)
        return Response(ReturnSerializer(return_order).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        """GET /api/returns/stats/ - Totales, reembolsos, productos y motivos más frecuentes."""
        data = Return.objects.aggregate(
            count=Count('id'),
            active=Count('id', filter=Q(is_active=True)),
            voided=Count('id', filter=Q(is_active=False)),
            refunded=Sum('amount', filter=Q(is_active=True)),
        )
        data['refunded'] = str(data['refunded'] or 0)

        top_products = (
            Return.objects.filter(is_active=True)
            .values('product_id', 'product__name')
            .annotate(returned=Sum('quantity'), count=Count('id'))
            .order_by('-returned')[:5]
        )
        top_reasons = (
            Return.objects.values('reason')
            .annotate(count=Count('id'))
            .order_by('-count', 'reason')[:5]
        )
        data['top_products'] = list(top_products)
        data['top_reasons'] = list(top_reasons)
        return Response(data, status=status.HTTP_200_OK)
