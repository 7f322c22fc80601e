# inventory/models.py
from django.conf import settings
from django.db import models
from django.db.models import Q

from products.models import Size


class StockMovement(models.Model):
    """
    Diario de movimientos de stock. Solo lo escribe el StockLedger, una fila
    por cada delta aplicado a una talla; nunca se edita.
    """
    IN = 'IN'
    OUT = 'OUT'
    DIRECTION_CHOICES = (
        (IN, 'Ingreso'),
        (OUT, 'Egreso'),
    )

    SOURCE_PURCHASE = 'PURCHASE'
    SOURCE_PURCHASE_VOID = 'PURCHASE_VOID'
    SOURCE_SALE = 'SALE'
    SOURCE_SALE_VOID = 'SALE_VOID'
    SOURCE_RETURN = 'RETURN'
    SOURCE_RETURN_TOGGLE = 'RETURN_TOGGLE'
    SOURCE_CHOICES = (
        (SOURCE_PURCHASE, 'Compra'),
        (SOURCE_PURCHASE_VOID, 'Anulación de compra'),
        (SOURCE_SALE, 'Venta'),
        (SOURCE_SALE_VOID, 'Anulación de venta'),
        (SOURCE_RETURN, 'Devolución'),
        (SOURCE_RETURN_TOGGLE, 'Cambio de estado de devolución'),
    )

    size = models.ForeignKey(Size, on_delete=models.PROTECT, related_name='movements')
    direction = models.CharField(max_length=3, choices=DIRECTION_CHOICES)
    quantity = models.PositiveIntegerField()
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES, db_index=True)
    source_id = models.PositiveBigIntegerField()
    note = models.CharField(max_length=255, blank=True, default='')

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='stock_movements',
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['source', 'source_id'], name='stock_mv_source_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                name='inventory_movement_quantity_positive',
                condition=Q(quantity__gt=0),
            ),
        ]

    def __str__(self):
        return f"{self.size} {self.direction} {self.quantity} ({self.source} #{self.source_id})"
