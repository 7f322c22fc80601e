# purchases/admin.py

from django.contrib import admin

from .models import Purchase, PurchaseLine


class PurchaseLineInline(admin.TabularInline):
    """Detalle de la compra; se crea solo al registrarla por la API."""
    model = PurchaseLine
    extra = 0
    fields = ('product', 'size', 'quantity', 'unit_cost', 'unit_sale_price', 'subtotal')
    readonly_fields = fields
    can_delete = False


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    list_display = ('id', 'supplier', 'total', 'payment_method', 'is_active', 'created_by', 'created_at')
    list_filter = ('is_active', 'created_at')
    search_fields = ('supplier__name', 'id')
    readonly_fields = (
        'supplier', 'total', 'payment_method', 'is_active', 'created_by', 'created_at',
        'void_reason', 'voided_at', 'voided_by',
    )
    inlines = [PurchaseLineInline]

    fieldsets = (
        (None, {'fields': ('supplier', 'payment_method', 'total', 'is_active', 'created_by', 'created_at')}),
        ('Anulación', {'fields': ('void_reason', 'voided_at', 'voided_by')}),
    )

    # Las compras se registran y anulan solo por la API (StockLedger).
    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
