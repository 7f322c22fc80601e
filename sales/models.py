# sales/models.py
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinLengthValidator
from django.db import models
from django.db.models import Q

from products.models import Product, Size


class Client(models.Model):
    DOCUMENT_TYPE_CHOICES = (
        (1, 'Cédula de Ciudadanía'),
        (2, 'Cédula de Extranjería'),
        (3, 'NIT'),
        (4, 'Pasaporte'),
    )

    document_type = models.PositiveSmallIntegerField(choices=DOCUMENT_TYPE_CHOICES, default=1)
    document = models.CharField(max_length=15, unique=True)
    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(max_length=100, blank=True)
    department = models.CharField(max_length=100, blank=True)
    city = models.CharField(max_length=100, blank=True)
    address = models.CharField(max_length=200, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.document})"


class Sale(models.Model):
    """Venta a cliente (descuenta stock). Solo se anula, nunca se edita."""

    class Status(models.TextChoices):
        COMPLETED = 'COMPLETED', 'Completada'
        PENDING = 'PENDING', 'Pendiente'
        VOIDED = 'VOIDED', 'Anulada'

    PAYMENT_METHOD_CHOICES = (
        ('Efectivo', 'Efectivo'),
        ('Tarjeta', 'Tarjeta'),
        ('Transferencia', 'Transferencia'),
        ('Crédito', 'Crédito'),
        ('Débito', 'Débito'),
    )

    client = models.ForeignKey(Client, on_delete=models.PROTECT, related_name='sales')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(
        max_length=10, choices=Status.choices, default=Status.COMPLETED, db_index=True
    )
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, blank=True, default='')

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='sales_created',
    )

    # Anulación
    void_reason = models.CharField(max_length=255, blank=True, default='')
    voided_at = models.DateTimeField(null=True, blank=True)
    voided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='sales_voided',
    )

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.CheckConstraint(
                name='sale_total_non_negative',
                condition=Q(total__gte=0),
            ),
        ]

    def __str__(self):
        return f"Venta N°{self.id} - {self.client.name}"

    @property
    def is_voided(self):
        return self.status == self.Status.VOIDED


class SaleLine(models.Model):
    """Detalle de una venta. `unit_price` queda congelado al momento de vender."""
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name='lines')
    product = models.ForeignKey(Product, on_delete=models.PROTECT)
    size = models.ForeignKey(Size, on_delete=models.PROTECT)
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        ordering = ['id']
        constraints = [
            models.CheckConstraint(
                name='sale_line_quantity_positive',
                condition=Q(quantity__gt=0),
            ),
        ]

    def __str__(self):
        return f"Venta N°{self.sale_id} - {self.product_id}/{self.size_id} x {self.quantity}"


class Return(models.Model):
    """
    Devolución de productos de una venta.
    Mientras está activa, la mercancía cuenta dentro del stock; cada cambio
    de estado mueve stock y queda registrado en ReturnStatusChange.
    """
    sale = models.ForeignKey(Sale, on_delete=models.PROTECT, related_name='returns')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='returns')
    size = models.ForeignKey(Size, on_delete=models.PROTECT, related_name='returns')
    quantity = models.PositiveIntegerField()
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    reason = models.CharField(max_length=255, validators=[MinLengthValidator(5)])
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='returns_created',
    )

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.CheckConstraint(
                name='return_quantity_positive',
                condition=Q(quantity__gt=0),
            ),
        ]

    def __str__(self):
        return f"Devolución N°{self.id} (Venta N°{self.sale_id})"


class ReturnStatusChange(models.Model):
    """Historial de activaciones/desactivaciones de una devolución."""
    return_order = models.ForeignKey(Return, on_delete=models.CASCADE, related_name='status_changes')
    from_active = models.BooleanField()
    to_active = models.BooleanField()
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='return_status_changes',
    )
    changed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['changed_at', 'id']

    def __str__(self):
        return f"Devolución N°{self.return_order_id}: {self.from_active} -> {self.to_active}"
