# purchases/serializers.py

from rest_framework import serializers

from inventory.serializers import LineInputSerializer
from .models import Purchase, PurchaseLine


# ----------------------------------------------------
# A. Lectura
# ----------------------------------------------------

class PurchaseLineSerializer(serializers.ModelSerializer):
    product_name = serializers.ReadOnlyField(source='product.name')
    size_label = serializers.ReadOnlyField(source='size.label')

    class Meta:
        model = PurchaseLine
        fields = (
            'id', 'product', 'product_name', 'size', 'size_label',
            'quantity', 'unit_cost', 'unit_sale_price', 'subtotal',
        )
        read_only_fields = fields


class PurchaseSerializer(serializers.ModelSerializer):
    supplier_name = serializers.ReadOnlyField(source='supplier.name')
    created_by_username = serializers.ReadOnlyField(source='created_by.username')
    lines = PurchaseLineSerializer(many=True, read_only=True)

    class Meta:
        model = Purchase
        fields = (
            'id', 'supplier', 'supplier_name', 'created_at', 'total', 'payment_method',
            'is_active', 'void_reason', 'voided_at', 'voided_by',
            'created_by', 'created_by_username', 'lines',
        )
        read_only_fields = fields


# ----------------------------------------------------
# B. Escritura (entrada del StockLedger)
# ----------------------------------------------------

class PurchaseCreateSerializer(serializers.Serializer):
    """
    Serializador para registrar una compra a proveedor (que incrementa stock).
    Se usa para POST /api/purchases/
    """
    supplier_id = serializers.IntegerField()
    payment_method = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    # Lista vacía permitida: el ledger responde EmptyOrder
    items = LineInputSerializer(many=True, allow_empty=True)
