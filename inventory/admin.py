# inventory/admin.py

from django.contrib import admin

from .models import StockMovement


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ('id', 'size', 'direction', 'quantity', 'source', 'source_id', 'created_by', 'created_at')
    list_filter = ('direction', 'source')
    search_fields = ('size__product__name', 'size__label')
    readonly_fields = [f.name for f in StockMovement._meta.fields]

    # El diario solo lo escribe el StockLedger.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
