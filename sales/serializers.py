# sales/serializers.py

from rest_framework import serializers

from accounts.utils import clean_document, validar_documento
from inventory.serializers import LineInputSerializer
from .models import Client, Return, ReturnStatusChange, Sale, SaleLine


# ----------------------------------------------------
# A. Clientes
# ----------------------------------------------------

class ClientSerializer(serializers.ModelSerializer):
    class Meta:
        model = Client
        fields = (
            'id', 'document_type', 'document', 'name', 'phone', 'email',
            'department', 'city', 'address', 'is_active', 'created_at',
        )
        read_only_fields = ('created_at',)

    def validate_document(self, value):
        """Documento de cliente: solo dígitos, entre 5 y 15."""
        if not validar_documento(value):
            raise serializers.ValidationError("El documento debe tener entre 5 y 15 dígitos.")
        doc = clean_document(value)
        qs = Client.objects.filter(document=doc)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Ya existe un cliente con este documento.")
        return doc

    def validate_name(self, value):
        value = value.strip()
        if len(value) < 3:
            raise serializers.ValidationError("El nombre debe tener al menos 3 caracteres.")
        return value


# ----------------------------------------------------
# B. Ventas
# ----------------------------------------------------

class SaleLineSerializer(serializers.ModelSerializer):
    product_name = serializers.ReadOnlyField(source='product.name')
    size_label = serializers.ReadOnlyField(source='size.label')

    class Meta:
        model = SaleLine
        fields = ('id', 'product', 'product_name', 'size', 'size_label', 'quantity', 'unit_price', 'subtotal')
        read_only_fields = fields


class SaleSerializer(serializers.ModelSerializer):
    client_name = serializers.ReadOnlyField(source='client.name')
    created_by_username = serializers.ReadOnlyField(source='created_by.username')
    lines = SaleLineSerializer(many=True, read_only=True)

    class Meta:
        model = Sale
        fields = (
            'id', 'client', 'client_name', 'created_at', 'total', 'status', 'payment_method',
            'void_reason', 'voided_at', 'voided_by', 'created_by', 'created_by_username', 'lines',
        )
        read_only_fields = fields


class SaleCreateSerializer(serializers.Serializer):
    """
    Serializador para registrar una venta (descuenta stock).
    Se usa para POST /api/sales/. El precio no se recibe: lo fija el producto.
    """
    client_id = serializers.IntegerField()
    payment_method = serializers.ChoiceField(
        choices=Sale.PAYMENT_METHOD_CHOICES, required=False, allow_blank=True, default=''
    )
    items = LineInputSerializer(many=True, allow_empty=True)


# ----------------------------------------------------
# C. Devoluciones
# ----------------------------------------------------

class ReturnStatusChangeSerializer(serializers.ModelSerializer):
    changed_by_username = serializers.ReadOnlyField(source='changed_by.username')

    class Meta:
        model = ReturnStatusChange
        fields = ('id', 'from_active', 'to_active', 'changed_by', 'changed_by_username', 'changed_at')
        read_only_fields = fields


class ReturnSerializer(serializers.ModelSerializer):
    product_name = serializers.ReadOnlyField(source='product.name')
    size_label = serializers.ReadOnlyField(source='size.label')
    client_name = serializers.ReadOnlyField(source='sale.client.name')
    status_changes = ReturnStatusChangeSerializer(many=True, read_only=True)

    class Meta:
        model = Return
        fields = (
            'id', 'sale', 'client_name', 'product', 'product_name', 'size', 'size_label',
            'quantity', 'amount', 'reason', 'is_active', 'created_at', 'created_by', 'status_changes',
        )
        read_only_fields = fields


class ReturnCreateSerializer(serializers.Serializer):
    """Usado para POST /api/returns/"""
    sale_id = serializers.IntegerField()
    product_id = serializers.IntegerField()
    size_id = serializers.IntegerField(required=False, allow_null=True)
    quantity = serializers.IntegerField()
    reason = serializers.CharField(max_length=255, allow_blank=True, trim_whitespace=True)
