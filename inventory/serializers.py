# inventory/serializers.py

from rest_framework import serializers

from .inputs import LineInput
from .models import StockMovement


# ----------------------------------------------------
# A. Entrada de líneas (compras y ventas)
# ----------------------------------------------------

class LineInputSerializer(serializers.Serializer):
    """
    Forma de una línea en el cuerpo del POST. Solo valida tipos;
    las reglas de negocio (talla del producto, cantidad > 0, precio > 0)
    las aplica el StockLedger para devolver el error tipado con el índice.
    """
    product_id = serializers.IntegerField()
    size_id = serializers.IntegerField(required=False, allow_null=True)
    size_label = serializers.CharField(required=False, allow_blank=True, max_length=50)
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    unit_sale_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)

    def to_line(self, data):
        return LineInput(
            product_id=data['product_id'],
            quantity=data['quantity'],
            size_id=data.get('size_id'),
            size_label=data.get('size_label') or None,
            unit_price=data.get('unit_price'),
            unit_sale_price=data.get('unit_sale_price'),
        )


def build_lines(items):
    """Convierte los ítems validados en LineInput conservando el orden."""
    to_line = LineInputSerializer().to_line
    return [to_line(item) for item in items]


class VoidSerializer(serializers.Serializer):
    """Usado para POST /api/purchases/{id}/void/ y /api/sales/{id}/void/"""
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


# ----------------------------------------------------
# B. Diario de movimientos (solo lectura)
# ----------------------------------------------------

class StockMovementSerializer(serializers.ModelSerializer):
    product = serializers.IntegerField(source='size.product_id', read_only=True)
    product_name = serializers.ReadOnlyField(source='size.product.name')
    size_label = serializers.ReadOnlyField(source='size.label')
    created_by_username = serializers.ReadOnlyField(source='created_by.username')

    class Meta:
        model = StockMovement
        fields = (
            'id', 'size', 'size_label', 'product', 'product_name', 'direction', 'quantity',
            'source', 'source_id', 'note', 'created_by', 'created_by_username', 'created_at',
        )
        read_only_fields = fields
