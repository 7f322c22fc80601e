# products/serializers.py

from rest_framework import serializers

from accounts.utils import clean_document, validar_documento
from .models import Category, Product, ProductImage, Size, Supplier


# ----------------------------------------------------
# A. Tallas (usado como anidado y para CRUD)
# ----------------------------------------------------

class SizeSerializer(serializers.ModelSerializer):
    product_name = serializers.ReadOnlyField(source='product.name')

    class Meta:
        model = Size
        fields = ('id', 'product', 'product_name', 'label', 'quantity')

    def get_fields(self):
        fields = super().get_fields()
        # El stock inicial se fija al crear; después solo lo mueve el StockLedger.
        if self.instance is not None:
            fields['quantity'].read_only = True
            fields['product'].read_only = True
        return fields

    def validate_quantity(self, value):
        if value < 0:
            raise serializers.ValidationError("El stock no puede ser negativo.")
        return value

    def validate_label(self, value):
        value = value.strip().upper()
        if not value:
            raise serializers.ValidationError("La talla es obligatoria.")
        return value

    def validate(self, data):
        product = data.get('product') or getattr(self.instance, 'product', None)
        label = data.get('label')
        if product is not None and label:
            qs = Size.objects.filter(product=product, label=label)
            if self.instance is not None:
                qs = qs.exclude(pk=self.instance.pk)
            if qs.exists():
                raise serializers.ValidationError({'label': "El producto ya tiene esta talla."})
        return data


class ProductSizeSerializer(serializers.ModelSerializer):
    class Meta:
        model = Size
        fields = ('id', 'label', 'quantity')
        read_only_fields = fields


class ProductImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductImage
        fields = ('id', 'product', 'url')


class ProductImageBulkSerializer(serializers.Serializer):
    """Alta de varias imágenes de un mismo producto."""
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    urls = serializers.ListField(child=serializers.URLField(max_length=500), allow_empty=False)


# ----------------------------------------------------
# B. Serializadores de Entidades Principales
# ----------------------------------------------------

class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ('id', 'name', 'description', 'is_active')

    def validate_name(self, value):
        value = value.strip()
        if len(value) < 3:
            raise serializers.ValidationError("El nombre debe tener al menos 3 caracteres.")
        return value


class ProductSerializer(serializers.ModelSerializer):
    category_name = serializers.ReadOnlyField(source='category.name')
    sizes = ProductSizeSerializer(many=True, read_only=True)
    images = serializers.SlugRelatedField(many=True, read_only=True, slug_field='url')
    total_stock = serializers.SerializerMethodField()
    effective_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = Product
        fields = (
            'id', 'name', 'description', 'category', 'category_name',
            'purchase_price', 'price', 'on_sale', 'sale_price', 'discount_percentage',
            'effective_price', 'is_active', 'created_at', 'sizes', 'images', 'total_stock',
        )
        read_only_fields = ('created_at',)

    def get_total_stock(self, obj):
        # Si el queryset viene anotado se evita una consulta por producto
        annotated = getattr(obj, 'total_stock', None)
        if annotated is not None:
            return annotated
        return obj.get_total_stock()

    def validate_price(self, value):
        """Validación numérica: price >= 0."""
        if value < 0:
            raise serializers.ValidationError("El precio debe ser un valor positivo (>= 0).")
        return value

    def validate(self, data):
        # el dato de oferta que llega manda; el otro se recalcula en Product.save
        if data.get('sale_price') is not None and 'discount_percentage' not in data:
            data['discount_percentage'] = None
        elif data.get('discount_percentage') is not None and 'sale_price' not in data:
            data['sale_price'] = None

        on_sale = data.get('on_sale', getattr(self.instance, 'on_sale', False))
        sale_price = data.get('sale_price', getattr(self.instance, 'sale_price', None))
        discount = data.get('discount_percentage', getattr(self.instance, 'discount_percentage', None))
        price = data.get('price', getattr(self.instance, 'price', None))
        if on_sale and sale_price is None and discount is None:
            raise serializers.ValidationError(
                {'sale_price': "Un producto en oferta requiere precio de oferta o porcentaje de descuento."}
            )
        if sale_price is not None and price is not None and sale_price > price:
            raise serializers.ValidationError({'sale_price': "El precio de oferta no puede superar el precio base."})
        return data


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = ('id', 'name', 'document_type', 'document_number', 'phone', 'email', 'address', 'is_active')

    def validate_document_number(self, value):
        """Documento del proveedor: alfanumérico, entre 5 y 20 caracteres."""
        if not validar_documento(value, min_len=5, max_len=20, digits_only=False):
            raise serializers.ValidationError("El documento debe tener entre 5 y 20 caracteres alfanuméricos.")
        return clean_document(value).upper()
