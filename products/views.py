# products/views.py (Django REST Framework Views)

from django.db.models import ProtectedError, Sum
from django.db.models.functions import Coalesce
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import HasActionPermission, IsAdministrator, crud_permissions
from .models import Category, Product, ProductImage, Size, Supplier
from .serializers import (
    CategorySerializer,
    ProductImageBulkSerializer,
    ProductImageSerializer,
    ProductSerializer,
    ProductSizeSerializer,
    SizeSerializer,
    SupplierSerializer,
)


# ----------------------------------------------------
# Base: borrado lógico cuando hay historial
# ----------------------------------------------------

class SoftDeleteModelViewSet(viewsets.ModelViewSet):
    """
    ModelViewSet que desactiva (is_active=False) en lugar de borrar
    cuando el registro está referenciado por compras o ventas.
    """
    permission_classes = [IsAuthenticated, HasActionPermission]

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError:
            instance.is_active = False
            instance.save(update_fields=['is_active'])


# ----------------------------------------------------
# A. ViewSets CRUD (Rutas API)
# ----------------------------------------------------

class CategoryViewSet(SoftDeleteModelViewSet):
    """
    CRUD de Categorías (API).
    Rutas: /api/categories/
    """
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    required_permissions = crud_permissions('categorias')
    filterset_fields = ['is_active']
    search_fields = ['name']


class ProductViewSet(SoftDeleteModelViewSet):
    """
    CRUD de Productos (API). Incluye stock total y precio vigente.
    Rutas: /api/products/, /api/products/{id}/sizes/
    """
    queryset = (
        Product.objects.all()
        .select_related('category')
        .prefetch_related('sizes', 'images')
        .annotate(total_stock=Coalesce(Sum('sizes__quantity'), 0))
    )
    serializer_class = ProductSerializer
    required_permissions = {**crud_permissions('productos'), 'sizes': 'ver_productos'}
    filterset_fields = ['category', 'is_active', 'on_sale']
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'price', 'created_at', 'total_stock']

    @action(detail=True, methods=['get'])
    def sizes(self, request, pk=None):
        """GET /api/products/{id}/sizes/ - Tallas del producto con su stock."""
        product = self.get_object()
        serializer = ProductSizeSerializer(product.sizes.all(), many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)


class SizeViewSet(viewsets.ModelViewSet):
    """
    CRUD de Tallas. El stock inicial se fija al crear; luego es de solo lectura.
    Rutas: /api/sizes/
    """
    queryset = Size.objects.all().select_related('product')
    serializer_class = SizeSerializer
    permission_classes = [IsAuthenticated, HasActionPermission]
    required_permissions = crud_permissions('productos')
    filterset_fields = ['product', 'label']
    search_fields = ['label', 'product__name']

    def perform_destroy(self, instance):
        if instance.quantity > 0:
            raise ValidationError("No se puede eliminar una talla con stock disponible.")
        try:
            instance.delete()
        except ProtectedError:
            raise ValidationError("La talla tiene compras o ventas asociadas y no se puede eliminar.")


class SupplierViewSet(SoftDeleteModelViewSet):
    """
    CRUD de Proveedores (API).
    Rutas: /api/suppliers/
    """
    queryset = Supplier.objects.all()
    serializer_class = SupplierSerializer
    required_permissions = crud_permissions('proveedores')
    filterset_fields = ['is_active', 'document_type']
    search_fields = ['name', 'document_number', 'email']


class ProductImageViewSet(viewsets.ModelViewSet):
    """
    Imágenes de productos (URL). Filtrar por producto con ?product=.
    Solo el Administrador puede borrarlas.
    Rutas: /api/product-images/, /api/product-images/bulk/
    """
    queryset = ProductImage.objects.all().select_related('product')
    serializer_class = ProductImageSerializer
    permission_classes = [IsAuthenticated, HasActionPermission]
    required_permissions = {**crud_permissions('productos'), 'bulk': 'crear_productos'}
    filterset_fields = ['product']

    def get_serializer_class(self):
        if self.action == 'bulk':
            return ProductImageBulkSerializer
        return ProductImageSerializer

    def get_permissions(self):
        if self.action == 'destroy':
            return [IsAuthenticated(), IsAdministrator()]
        return super().get_permissions()

    @action(detail=False, methods=['post'])
    def bulk(self, request):
        """POST /api/product-images/bulk/ - Registra varias URLs para un producto."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product = serializer.validated_data['product']
        images = ProductImage.objects.bulk_create(
            [ProductImage(product=product, url=url) for url in serializer.validated_data['urls']]
        )
        return Response(ProductImageSerializer(images, many=True).data, status=status.HTTP_201_CREATED)
