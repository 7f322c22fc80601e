# inventory/views.py

from rest_framework import mixins, viewsets
from rest_framework.permissions import IsAuthenticated

from accounts.permissions import HasActionPermission

from .models import StockMovement
from .serializers import StockMovementSerializer


class StockMovementViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Diario de movimientos de stock (solo lectura).
    Rutas: /api/stock-movements/?size=&size__product=&source=&direction=
    """
    queryset = StockMovement.objects.all().select_related('size__product', 'created_by')
    serializer_class = StockMovementSerializer
    permission_classes = [IsAuthenticated, HasActionPermission]
    required_permissions = {'list': 'ver_productos', 'retrieve': 'ver_productos'}
    filterset_fields = ['size', 'size__product', 'source', 'source_id', 'direction']
    ordering_fields = ['created_at', 'quantity']
