# inventory/ledger.py
import logging
from collections import OrderedDict
from decimal import Decimal, InvalidOperation
from functools import wraps

from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import F, Sum
from django.utils import timezone

from products.models import Product, Size, Supplier
from purchases.models import Purchase, PurchaseLine
from sales.models import Client, Return, ReturnStatusChange, Sale, SaleLine

from .exceptions import (
    EmptyOrder,
    InsufficientStock,
    InvalidLineItem,
    InvalidReference,
    InvalidReturnRequest,
    LedgerError,
    NotVoidable,
)
from .inputs import LedgerResult
from .models import StockMovement

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')
MIN_REASON_LENGTH = 5


def _money(value):
    return Decimal(str(value)).quantize(TWO_PLACES)


def _is_positive_int(value):
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _positive_decimal(value):
    """Convierte a Decimal con dos decimales; None si no queda un monto positivo."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    amount = amount.quantize(TWO_PLACES)
    if amount <= 0:
        return None
    return amount


def _logged(operation):
    """Registra en WARNING cada operación rechazada y deja pasar el error."""
    @wraps(operation)
    def wrapper(self, *args, **kwargs):
        try:
            return operation(self, *args, **kwargs)
        except LedgerError as exc:
            logger.warning("%s rechazada: %s", operation.__name__, exc.as_dict())
            raise
    return wrapper


class StockLedger:
    """
    Único punto que mueve stock.

    Cada operación abre su propio `transaction.atomic` sobre la base `using`:
    primero valida (sin escribir nada), luego bloquea las tallas tocadas en
    orden de pk y aplica los deltas. Cualquier error dentro del bloque
    revierte la operación completa.

    `user` queda como autor de las filas creadas, anulaciones, cambios de
    estado y movimientos de stock.
    """

    def __init__(self, user=None, using=None):
        if user is not None and not getattr(user, 'is_authenticated', False):
            user = None
        self.user = user
        self.using = using or DEFAULT_DB_ALIAS

    # ----------------------------------------------------
    # A. COMPRAS
    # ----------------------------------------------------

    @_logged
    def record_purchase(self, supplier_id, lines, payment_method=''):
        """
        Registra una compra: valida proveedor y líneas, suma stock a cada
        talla y guarda cabecera + detalle. Devuelve LedgerResult(id, total).
        """
        with transaction.atomic(using=self.using):
            supplier = self._get_active(Supplier, supplier_id, 'proveedor', 'supplier_id')
            resolved = self._resolve_lines(lines, check=self._check_purchase_prices)

            rows = [
                (product, size, line.quantity, _money(line.unit_price),
                 _money(product.price if line.unit_sale_price is None else line.unit_sale_price))
                for _, line, product, size in resolved
            ]
            total = sum((qty * cost for _, _, qty, cost, _ in rows), Decimal('0.00'))

            purchase = Purchase.objects.using(self.using).create(
                supplier=supplier,
                total=_money(total),
                payment_method=payment_method or '',
                created_by=self.user,
            )
            PurchaseLine.objects.using(self.using).bulk_create([
                PurchaseLine(
                    purchase=purchase,
                    product=product,
                    size=size,
                    quantity=qty,
                    unit_cost=cost,
                    unit_sale_price=sale_price,
                    subtotal=_money(qty * cost),
                )
                for product, size, qty, cost, sale_price in rows
            ])

            deltas = self._sum_by_size((size, qty) for _, size, qty, _, _ in rows)
            self._lock_sizes(deltas)
            for size_id, qty in deltas.items():
                self._increment(size_id, qty, StockMovement.SOURCE_PURCHASE, purchase.pk)

        logger.info(
            "Compra %s registrada: proveedor=%s lineas=%s total=%s",
            purchase.pk, supplier.pk, len(rows), purchase.total,
        )
        return LedgerResult(id=purchase.pk, total=purchase.total)

    @_logged
    def void_purchase(self, purchase_id, reason=''):
        """
        Anula una compra activa descontando el stock que ingresó.
        Si alguna talla ya no tiene esas unidades, la anulación se rechaza
        con InsufficientStock y nada cambia.
        """
        with transaction.atomic(using=self.using):
            purchase = (
                Purchase.objects.using(self.using)
                .select_for_update()
                .filter(pk=purchase_id)
                .first()
            )
            if purchase is None or not purchase.is_active:
                raise NotVoidable(
                    'La compra no existe o ya está anulada.', purchase_id=purchase_id
                )

            lines = list(purchase.lines.all())
            deltas = self._sum_by_size((line.size_id, line.quantity) for line in lines)
            self._lock_sizes(deltas)
            products = {line.size_id: line.product_id for line in lines}
            for size_id, qty in deltas.items():
                self._decrement(
                    size_id, qty, StockMovement.SOURCE_PURCHASE_VOID, purchase.pk,
                    product_id=products[size_id],
                )

            purchase.is_active = False
            purchase.void_reason = (reason or '').strip()
            purchase.voided_at = timezone.now()
            purchase.voided_by = self.user
            purchase.save(
                using=self.using,
                update_fields=['is_active', 'void_reason', 'voided_at', 'voided_by'],
            )

        logger.info("Compra %s anulada: lineas=%s", purchase.pk, len(lines))
        return LedgerResult(id=purchase.pk, total=purchase.total)

    # ----------------------------------------------------
    # B. VENTAS
    # ----------------------------------------------------

    @_logged
    def record_sale(self, client_id, lines, payment_method=None):
        """
        Registra una venta: valida cliente, líneas y stock disponible,
        congela el precio vigente de cada producto y descuenta stock.
        """
        with transaction.atomic(using=self.using):
            client = self._get_active(Client, client_id, 'cliente', 'client_id')
            resolved = self._resolve_lines(lines)

            requested = self._sum_by_size((size, line.quantity) for _, line, _, size in resolved)
            locked = self._lock_sizes(requested)

            # Disponibilidad con las filas ya bloqueadas, antes de escribir.
            for index, line, product, size in resolved:
                available = locked[size.pk]
                if requested[size.pk] > available:
                    raise InsufficientStock(
                        f'Stock insuficiente para {product.name} talla {size.label}.',
                        line=index, product_id=product.pk, size_id=size.pk,
                        available=available, requested=requested[size.pk],
                    )

            rows = [
                (product, size, line.quantity, _money(product.effective_price))
                for _, line, product, size in resolved
            ]
            total = sum((qty * price for _, _, qty, price in rows), Decimal('0.00'))

            sale = Sale.objects.using(self.using).create(
                client=client,
                total=_money(total),
                status=Sale.Status.COMPLETED,
                payment_method=payment_method or '',
                created_by=self.user,
            )
            SaleLine.objects.using(self.using).bulk_create([
                SaleLine(
                    sale=sale,
                    product=product,
                    size=size,
                    quantity=qty,
                    unit_price=price,
                    subtotal=_money(qty * price),
                )
                for product, size, qty, price in rows
            ])

            products = {size.pk: product.pk for product, size, _, _ in rows}
            for size_id, qty in requested.items():
                self._decrement(
                    size_id, qty, StockMovement.SOURCE_SALE, sale.pk,
                    product_id=products[size_id],
                )

        logger.info(
            "Venta %s registrada: cliente=%s lineas=%s total=%s",
            sale.pk, client.pk, len(rows), sale.total,
        )
        return LedgerResult(id=sale.pk, total=sale.total)

    @_logged
    def void_sale(self, sale_id, reason=''):
        """Anula una venta y devuelve al stock las unidades vendidas. Estado terminal."""
        with transaction.atomic(using=self.using):
            sale = (
                Sale.objects.using(self.using)
                .select_for_update()
                .filter(pk=sale_id)
                .first()
            )
            if sale is None or sale.status == Sale.Status.VOIDED:
                raise NotVoidable('La venta no existe o ya está anulada.', sale_id=sale_id)

            lines = list(sale.lines.all())
            deltas = self._sum_by_size((line.size_id, line.quantity) for line in lines)
            self._lock_sizes(deltas)
            for size_id, qty in deltas.items():
                self._increment(size_id, qty, StockMovement.SOURCE_SALE_VOID, sale.pk)

            sale.status = Sale.Status.VOIDED
            sale.void_reason = (reason or '').strip()
            sale.voided_at = timezone.now()
            sale.voided_by = self.user
            sale.save(
                using=self.using,
                update_fields=['status', 'void_reason', 'voided_at', 'voided_by'],
            )

        logger.info("Venta %s anulada: lineas=%s", sale.pk, len(lines))
        return LedgerResult(id=sale.pk, total=sale.total)

    # ----------------------------------------------------
    # C. DEVOLUCIONES
    # ----------------------------------------------------

    @_logged
    def record_return(self, sale_id, product_id, quantity, reason, size_id=None):
        """
        Registra la devolución de un producto vendido.
        El reembolso usa el precio congelado en la línea de venta y el stock
        vuelve a la talla que se vendió.
        """
        with transaction.atomic(using=self.using):
            sale = Sale.objects.using(self.using).filter(pk=sale_id).first()
            if sale is None:
                raise InvalidReference('La venta no existe.', sale_id=sale_id)
            if not Product.objects.using(self.using).filter(pk=product_id).exists():
                raise InvalidReference('El producto no existe.', product_id=product_id)

            candidates = sale.lines.select_for_update().filter(product_id=product_id)
            if size_id is not None:
                candidates = candidates.filter(size_id=size_id)
            candidates = list(candidates)
            if not candidates:
                raise InvalidReturnRequest(
                    'El producto no forma parte de la venta.',
                    sale_id=sale.pk, product_id=product_id,
                )
            if len(candidates) > 1:
                raise InvalidReturnRequest(
                    'El producto se vendió en varias tallas; indique size_id.',
                    sale_id=sale.pk, product_id=product_id,
                    sizes=sorted({line.size_id for line in candidates}),
                )
            sale_line = candidates[0]

            if not _is_positive_int(quantity):
                raise InvalidReturnRequest(
                    'La cantidad a devolver debe ser un entero positivo.',
                    product_id=product_id, requested=quantity,
                )
            returned = self._returned_units(sale_line)
            if quantity + returned > sale_line.quantity:
                raise InvalidReturnRequest(
                    'La cantidad a devolver supera la cantidad vendida.',
                    product_id=product_id, sold=sale_line.quantity,
                    returned=returned, requested=quantity,
                )
            reason = (reason or '').strip()
            if len(reason) < MIN_REASON_LENGTH:
                raise InvalidReturnRequest(
                    f'El motivo debe tener al menos {MIN_REASON_LENGTH} caracteres.',
                    field='reason',
                )

            amount = _money(quantity * sale_line.unit_price)
            return_order = Return.objects.using(self.using).create(
                sale=sale,
                product_id=product_id,
                size_id=sale_line.size_id,
                quantity=quantity,
                amount=amount,
                reason=reason,
                is_active=True,
                created_by=self.user,
            )

            self._lock_sizes({sale_line.size_id: quantity})
            self._increment(sale_line.size_id, quantity, StockMovement.SOURCE_RETURN, return_order.pk)

        logger.info(
            "Devolución %s registrada: venta=%s producto=%s cantidad=%s monto=%s",
            return_order.pk, sale.pk, product_id, quantity, amount,
        )
        return LedgerResult(id=return_order.pk, total=amount)

    @_logged
    def toggle_return_status(self, return_id):
        """
        Activa o desactiva una devolución.
        Al desactivarla las unidades salen del stock; al reactivarla vuelven.
        Cada cambio queda en ReturnStatusChange.
        """
        with transaction.atomic(using=self.using):
            return_order = (
                Return.objects.using(self.using)
                .select_for_update()
                .filter(pk=return_id)
                .first()
            )
            if return_order is None:
                raise InvalidReference('La devolución no existe.', return_id=return_id)

            was_active = return_order.is_active
            if not was_active:
                sale_line = (
                    SaleLine.objects.using(self.using)
                    .select_for_update()
                    .filter(
                        sale_id=return_order.sale_id,
                        product_id=return_order.product_id,
                        size_id=return_order.size_id,
                    )
                    .first()
                )
                returned = self._returned_units(sale_line) if sale_line else 0
                if sale_line and return_order.quantity + returned > sale_line.quantity:
                    raise InvalidReturnRequest(
                        'Reactivarla supera la cantidad vendida.',
                        return_id=return_order.pk, sold=sale_line.quantity,
                        returned=returned, requested=return_order.quantity,
                    )
            self._lock_sizes({return_order.size_id: return_order.quantity})
            if was_active:
                self._decrement(
                    return_order.size_id, return_order.quantity,
                    StockMovement.SOURCE_RETURN_TOGGLE, return_order.pk,
                    product_id=return_order.product_id,
                )
            else:
                self._increment(
                    return_order.size_id, return_order.quantity,
                    StockMovement.SOURCE_RETURN_TOGGLE, return_order.pk,
                )

            return_order.is_active = not was_active
            return_order.save(using=self.using, update_fields=['is_active'])
            ReturnStatusChange.objects.using(self.using).create(
                return_order=return_order,
                from_active=was_active,
                to_active=return_order.is_active,
                changed_by=self.user,
            )

        logger.info(
            "Devolución %s %s", return_order.pk,
            'activada' if return_order.is_active else 'desactivada',
        )
        return return_order

    # ----------------------------------------------------
    # D. AUXILIARES
    # ----------------------------------------------------

    def _get_active(self, model, pk, label, key):
        obj = model.objects.using(self.using).filter(pk=pk).first() if pk is not None else None
        if obj is None:
            raise InvalidReference(f'El {label} no existe.', **{key: pk})
        if not obj.is_active:
            raise InvalidReference(f'El {label} está inactivo.', **{key: pk})
        return obj

    def _returned_units(self, sale_line):
        """Unidades ya devueltas (devoluciones activas) sobre una línea de venta."""
        units = (
            Return.objects.using(self.using)
            .filter(
                sale_id=sale_line.sale_id,
                product_id=sale_line.product_id,
                size_id=sale_line.size_id,
                is_active=True,
            )
            .aggregate(units=Sum('quantity'))['units']
        )
        return units or 0

    @staticmethod
    def _check_purchase_prices(index, line, product):
        if _positive_decimal(line.unit_price) is None:
            raise InvalidLineItem(
                'El precio de compra debe ser mayor que cero.',
                line=index, product_id=product.pk, field='unit_price',
            )
        if line.unit_sale_price is not None and _positive_decimal(line.unit_sale_price) is None:
            raise InvalidLineItem(
                'El precio de venta debe ser mayor que cero.',
                line=index, product_id=product.pk, field='unit_sale_price',
            )

    def _resolve_lines(self, lines, check=None):
        """
        Valida cada línea en orden y devuelve [(índice, línea, producto, talla)].
        Falla en la primera línea inválida indicando su índice; `check` agrega
        validaciones propias de la operación.
        """
        lines = list(lines or [])
        if not lines:
            raise EmptyOrder()

        resolved = []
        for index, line in enumerate(lines):
            product = Product.objects.using(self.using).filter(pk=line.product_id).first()
            if product is None:
                raise InvalidLineItem(
                    'El producto no existe.',
                    line=index, product_id=line.product_id, field='product_id',
                )
            size = self._resolve_size(index, line, product)
            if not _is_positive_int(line.quantity):
                raise InvalidLineItem(
                    'La cantidad debe ser un entero positivo.',
                    line=index, product_id=product.pk, field='quantity',
                )
            if check is not None:
                check(index, line, product)
            resolved.append((index, line, product, size))
        return resolved

    def _resolve_size(self, index, line, product):
        sizes = Size.objects.using(self.using).filter(product=product)
        if line.size_id is not None:
            size = sizes.filter(pk=line.size_id).first()
        elif line.size_label:
            size = sizes.filter(label=line.size_label.strip().upper()).first()
        else:
            # Sin talla explícita solo se acepta un producto de talla única.
            candidates = list(sizes[:2])
            size = candidates[0] if len(candidates) == 1 else None
        if size is None:
            raise InvalidLineItem(
                'La talla no existe para este producto.',
                line=index, product_id=product.pk, field='size',
            )
        return size

    @staticmethod
    def _sum_by_size(pairs):
        """Agrupa cantidades por talla conservando el orden de aparición."""
        totals = OrderedDict()
        for size, qty in pairs:
            size_id = size if isinstance(size, int) else size.pk
            totals[size_id] = totals.get(size_id, 0) + qty
        return totals

    def _lock_sizes(self, size_ids):
        """Bloquea las tallas en orden de pk y devuelve {id: cantidad actual}."""
        locked = (
            Size.objects.using(self.using)
            .select_for_update()
            .filter(pk__in=list(size_ids))
            .order_by('pk')
            .values_list('pk', 'quantity')
        )
        return dict(locked)

    def _increment(self, size_id, qty, source, source_id):
        Size.objects.using(self.using).filter(pk=size_id).update(quantity=F('quantity') + qty)
        self._journal(size_id, StockMovement.IN, qty, source, source_id)

    def _decrement(self, size_id, qty, source, source_id, product_id=None):
        updated = (
            Size.objects.using(self.using)
            .filter(pk=size_id, quantity__gte=qty)
            .update(quantity=F('quantity') - qty)
        )
        if not updated:
            available = (
                Size.objects.using(self.using)
                .filter(pk=size_id)
                .values_list('quantity', flat=True)
                .first()
            )
            raise InsufficientStock(
                'Stock insuficiente para completar la operación.',
                product_id=product_id, size_id=size_id,
                available=available or 0, requested=qty,
            )
        self._journal(size_id, StockMovement.OUT, qty, source, source_id)

    def _journal(self, size_id, direction, qty, source, source_id):
        StockMovement.objects.using(self.using).create(
            size_id=size_id,
            direction=direction,
            quantity=qty,
            source=source,
            source_id=source_id,
            created_by=self.user,
        )
