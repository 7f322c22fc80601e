# sales/admin.py

from django.contrib import admin

from .models import Client, Return, ReturnStatusChange, Sale, SaleLine

# ----------------------------------------------------
# 1. Inlines (Detalles de la Transacción)
# ----------------------------------------------------

class SaleLineInline(admin.TabularInline):
    """Muestra los productos, tallas y precios congelados de una venta."""
    model = SaleLine
    extra = 0
    fields = ('product', 'size', 'quantity', 'unit_price', 'subtotal')
    readonly_fields = fields
    can_delete = False


class ReturnStatusChangeInline(admin.TabularInline):
    model = ReturnStatusChange
    extra = 0
    fields = ('from_active', 'to_active', 'changed_by', 'changed_at')
    readonly_fields = fields
    can_delete = False


# ----------------------------------------------------
# 2. Registros Principales
# ----------------------------------------------------

@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ('name', 'document_type', 'document', 'phone', 'city', 'is_active')
    list_filter = ('is_active', 'document_type', 'department')
    search_fields = ('name', 'document', 'email')


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    """Ventas: se registran y anulan solo por la API (StockLedger)."""
    list_display = ('id', 'client', 'total', 'status', 'payment_method', 'created_by', 'created_at')
    list_filter = ('status', 'payment_method', 'created_at')
    search_fields = ('client__name', 'client__document', 'id')
    readonly_fields = (
        'client', 'total', 'status', 'payment_method', 'created_by', 'created_at',
        'void_reason', 'voided_at', 'voided_by',
    )
    inlines = [SaleLineInline]

    fieldsets = (
        (None, {'fields': ('client', 'payment_method', 'total', 'status', 'created_by', 'created_at')}),
        ('Anulación', {'fields': ('void_reason', 'voided_at', 'voided_by')}),
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Return)
class ReturnAdmin(admin.ModelAdmin):
    list_display = ('id', 'sale', 'product', 'size', 'quantity', 'amount', 'is_active', 'created_at')
    list_filter = ('is_active', 'created_at')
    search_fields = ('reason', 'product__name', 'sale__id')
    readonly_fields = ('sale', 'product', 'size', 'quantity', 'amount', 'reason', 'is_active', 'created_by', 'created_at')
    inlines = [ReturnStatusChangeInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
