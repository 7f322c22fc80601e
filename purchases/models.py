# purchases/models.py
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q

from products.models import Product, Size, Supplier


class Purchase(models.Model):
    """Compra a proveedor (aumenta stock). Solo se anula, nunca se edita."""
    supplier = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name='purchases')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    payment_method = models.CharField(max_length=50, blank=True, default='')
    is_active = models.BooleanField(default=True, db_index=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='purchases_created',
    )

    # Anulación
    void_reason = models.CharField(max_length=255, blank=True, default='')
    voided_at = models.DateTimeField(null=True, blank=True)
    voided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='purchases_voided',
    )

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.CheckConstraint(
                name='purchase_total_non_negative',
                condition=Q(total__gte=0),
            ),
        ]

    def __str__(self):
        return f"Compra N°{self.id} - {self.supplier.name}"


class PurchaseLine(models.Model):
    purchase = models.ForeignKey(Purchase, on_delete=models.CASCADE, related_name='lines')
    product = models.ForeignKey(Product, on_delete=models.PROTECT)
    size = models.ForeignKey(Size, on_delete=models.PROTECT)
    quantity = models.PositiveIntegerField()
    unit_cost = models.DecimalField(max_digits=10, decimal_places=2)
    unit_sale_price = models.DecimalField(max_digits=10, decimal_places=2)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        ordering = ['id']
        constraints = [
            models.CheckConstraint(
                name='purchase_line_quantity_positive',
                condition=Q(quantity__gt=0),
            ),
            models.CheckConstraint(
                name='purchase_line_unit_cost_positive',
                condition=Q(unit_cost__gt=0),
            ),
        ]

    def __str__(self):
        return f"Compra N°{self.purchase_id} - {self.product_id}/{self.size_id} x {self.quantity} @ {self.unit_cost}"
