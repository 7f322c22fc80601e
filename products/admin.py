# products/admin.py

from django.contrib import admin

from .models import Category, Product, ProductImage, Size, Supplier

# ----------------------------------------------------
# 1. Inline para las tallas del producto
# ----------------------------------------------------

class SizeInline(admin.TabularInline):
    """
    Tallas del producto. El stock se ve pero no se edita aquí:
    solo lo mueven compras, ventas y devoluciones.
    """
    model = Size
    extra = 1
    fields = ('label', 'quantity')

    def get_readonly_fields(self, request, obj=None):
        return ('quantity',) if obj is not None else ()


class ProductImageInline(admin.TabularInline):
    model = ProductImage
    extra = 1


# ----------------------------------------------------
# 2. Registros Principales
# ----------------------------------------------------

@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ('name', 'is_active')
    list_filter = ('is_active',)
    search_fields = ('name',)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Administración del modelo Product."""
    list_display = ('name', 'category', 'price', 'on_sale', 'sale_price', 'is_active')
    list_filter = ('category', 'on_sale', 'is_active')
    search_fields = ('name', 'description')
    inlines = [SizeInline, ProductImageInline]

    fieldsets = (
        (None, {'fields': ('name', 'description', 'category', 'is_active')}),
        ('Precios', {'fields': ('purchase_price', 'price')}),
        ('Promoción', {'fields': ('on_sale', 'sale_price', 'discount_percentage')}),
    )


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    """Administración de los Proveedores."""
    list_display = ('name', 'document_type', 'document_number', 'email', 'phone', 'is_active')
    list_filter = ('is_active', 'document_type')
    search_fields = ('name', 'document_number')
