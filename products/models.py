# products/models.py
from decimal import ROUND_HALF_UP, Decimal

from django.core.validators import MaxValueValidator, MinLengthValidator, MinValueValidator
from django.db import models
from django.db.models import Q, Sum


class Category(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'categories'

    def __str__(self):
        return self.name


class Product(models.Model):
    """Producto de catálogo. El stock vive en sus tallas (Size)."""
    name = models.CharField(max_length=200, validators=[MinLengthValidator(3)])
    description = models.TextField(blank=True)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='products')

    purchase_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(0)]
    )
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])

    # Promoción
    on_sale = models.BooleanField(default=False)
    sale_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )
    discount_percentage = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MaxValueValidator(100)]
    )

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.sync_promotion()
        super().save(*args, **kwargs)

    def sync_promotion(self):
        """
        Completa el dato de oferta que falte a partir del otro.
        Sin promoción activa se limpian precio de oferta y porcentaje.
        """
        if not self.on_sale:
            self.sale_price = None
            self.discount_percentage = None
            return
        price = Decimal(str(self.price))
        if self.sale_price is not None and self.discount_percentage is None and price > 0:
            discount = (price - Decimal(str(self.sale_price))) / price * 100
            self.discount_percentage = int(discount.quantize(Decimal('1'), rounding=ROUND_HALF_UP))
        elif self.discount_percentage is not None and self.sale_price is None:
            discount = price * Decimal(self.discount_percentage) / 100
            self.sale_price = (price - discount).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    @property
    def effective_price(self):
        """Precio de venta vigente: el de oferta si la promoción está activa."""
        if self.on_sale and self.sale_price is not None:
            return self.sale_price
        return self.price

    def get_total_stock(self):
        return self.sizes.aggregate(total_stock=Sum('quantity'))['total_stock'] or 0


class Size(models.Model):
    """Talla de un producto. `quantity` es el contador de stock real."""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='sizes')
    label = models.CharField(max_length=50)
    quantity = models.IntegerField(default=0)

    class Meta:
        ordering = ['product_id', 'label']
        unique_together = ('product', 'label')
        constraints = [
            models.CheckConstraint(
                name='products_size_quantity_non_negative',
                condition=Q(quantity__gte=0),
            ),
        ]

    def __str__(self):
        return f"{self.product.name} - {self.label} (Stock: {self.quantity})"

    def save(self, *args, **kwargs):
        self.label = (self.label or '').strip().upper()
        super().save(*args, **kwargs)


class ProductImage(models.Model):
    """Imagen del producto, referenciada por URL."""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='images')
    url = models.URLField(max_length=500)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f"{self.product.name} - {self.url}"


class Supplier(models.Model):
    DOCUMENT_TYPE_CHOICES = (
        ('NIT', 'NIT'),
        ('CC', 'Cédula de Ciudadanía'),
        ('CE', 'Cédula de Extranjería'),
        ('RUT', 'RUT'),
    )

    name = models.CharField(max_length=150)
    document_type = models.CharField(max_length=20, choices=DOCUMENT_TYPE_CHOICES)
    document_number = models.CharField(max_length=20, unique=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(max_length=100)
    address = models.CharField(max_length=200, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name
