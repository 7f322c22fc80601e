# inventory/tests.py
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from products.models import Category, Product, Size, Supplier
from purchases.models import Purchase, PurchaseLine
from sales.models import Client, Return, Sale, SaleLine

from inventory.exceptions import (
    EmptyOrder,
    InsufficientStock,
    InvalidLineItem,
    InvalidReference,
    InvalidReturnRequest,
    NotVoidable,
)
from inventory.inputs import LineInput
from inventory.ledger import StockLedger
from inventory.models import StockMovement

User = get_user_model()


# ------------------------------------------------------------
# Helpers de catálogo (reutilizados por los tests de las APIs)
# ------------------------------------------------------------

def make_product(name="Camiseta básica", price="20000.00", sizes=None, **extra):
    category, _ = Category.objects.get_or_create(name="Camisetas")
    product = Product.objects.create(name=name, category=category, price=Decimal(price), **extra)
    for label, quantity in (sizes or {}).items():
        Size.objects.create(product=product, label=label, quantity=quantity)
    return product


def make_supplier(document_number="900123456", **extra):
    defaults = {"name": "Textiles del Norte", "document_type": "NIT", "email": "ventas@textiles.co"}
    defaults.update(extra)
    return Supplier.objects.create(document_number=document_number, **defaults)


def make_client(document="1020304050", **extra):
    defaults = {"name": "Laura Gómez", "document_type": 1}
    defaults.update(extra)
    return Client.objects.create(document=document, **defaults)


def stock(product, label):
    return Size.objects.get(product=product, label=label).quantity


# ------------------------------------------------------------
# Ventas
# ------------------------------------------------------------

class RecordSaleTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="vendedor", password="clave-segura-1")
        self.product = make_product(sizes={"M": 5, "L": 2})
        self.client_obj = make_client()
        self.ledger = StockLedger(user=self.user)

    def test_sale_decrements_stock_and_freezes_price(self):
        result = self.ledger.record_sale(
            self.client_obj.pk, [LineInput(product_id=self.product.pk, size_label="M", quantity=3)]
        )

        self.assertEqual(stock(self.product, "M"), 2)
        self.assertEqual(result.total, Decimal("60000.00"))

        sale = Sale.objects.get(pk=result.id)
        self.assertEqual(sale.status, Sale.Status.COMPLETED)
        self.assertEqual(sale.created_by, self.user)
        line = sale.lines.get()
        self.assertEqual(line.unit_price, Decimal("20000.00"))
        self.assertEqual(line.subtotal, Decimal("60000.00"))

        # cambiar el precio después no altera la venta
        self.product.price = Decimal("99999.00")
        self.product.save()
        line.refresh_from_db()
        self.assertEqual(line.unit_price, Decimal("20000.00"))

    def test_sale_uses_promotional_price_when_on_sale(self):
        self.product.on_sale = True
        self.product.sale_price = Decimal("15000.00")
        self.product.save()

        result = self.ledger.record_sale(
            self.client_obj.pk, [LineInput(product_id=self.product.pk, size_label="M", quantity=2)]
        )
        self.assertEqual(result.total, Decimal("30000.00"))

    def test_total_matches_sum_of_lines(self):
        other = make_product(name="Pantalón jean", price="55000.50", sizes={"32": 4})
        result = self.ledger.record_sale(self.client_obj.pk, [
            LineInput(product_id=self.product.pk, size_label="M", quantity=1),
            LineInput(product_id=other.pk, size_label="32", quantity=2),
        ])

        sale = Sale.objects.get(pk=result.id)
        subtotals = [line.subtotal for line in sale.lines.all()]
        self.assertEqual(sale.total, sum(subtotals))
        for line in sale.lines.all():
            self.assertEqual(line.subtotal, line.quantity * line.unit_price)

    def test_selling_exact_stock_leaves_zero(self):
        self.ledger.record_sale(
            self.client_obj.pk, [LineInput(product_id=self.product.pk, size_label="M", quantity=5)]
        )
        self.assertEqual(stock(self.product, "M"), 0)

    def test_selling_one_more_than_stock_fails_without_changes(self):
        with self.assertRaises(InsufficientStock) as ctx:
            self.ledger.record_sale(
                self.client_obj.pk, [LineInput(product_id=self.product.pk, size_label="M", quantity=6)]
            )

        self.assertEqual(ctx.exception.context["available"], 5)
        self.assertEqual(ctx.exception.context["requested"], 6)
        self.assertEqual(stock(self.product, "M"), 5)
        self.assertFalse(Sale.objects.exists())
        self.assertFalse(StockMovement.objects.exists())

    def test_lines_for_same_size_are_checked_together(self):
        with self.assertRaises(InsufficientStock):
            self.ledger.record_sale(self.client_obj.pk, [
                LineInput(product_id=self.product.pk, size_label="L", quantity=1),
                LineInput(product_id=self.product.pk, size_label="L", quantity=2),
            ])
        self.assertEqual(stock(self.product, "L"), 2)

    def test_failure_on_later_line_rolls_back_everything(self):
        with self.assertRaises(InsufficientStock):
            self.ledger.record_sale(self.client_obj.pk, [
                LineInput(product_id=self.product.pk, size_label="M", quantity=1),
                LineInput(product_id=self.product.pk, size_label="L", quantity=3),
            ])

        self.assertEqual(stock(self.product, "M"), 5)
        self.assertEqual(stock(self.product, "L"), 2)
        self.assertFalse(SaleLine.objects.exists())

    def test_inactive_client_is_invalid_reference(self):
        self.client_obj.is_active = False
        self.client_obj.save()
        with self.assertRaises(InvalidReference):
            self.ledger.record_sale(
                self.client_obj.pk, [LineInput(product_id=self.product.pk, size_label="M", quantity=1)]
            )

    def test_unknown_client_is_checked_before_lines(self):
        with self.assertRaises(InvalidReference):
            self.ledger.record_sale(999999, [])

    def test_empty_sale_is_rejected(self):
        with self.assertRaises(EmptyOrder):
            self.ledger.record_sale(self.client_obj.pk, [])

    def test_invalid_line_reports_its_index(self):
        with self.assertRaises(InvalidLineItem) as ctx:
            self.ledger.record_sale(self.client_obj.pk, [
                LineInput(product_id=self.product.pk, size_label="M", quantity=1),
                LineInput(product_id=self.product.pk, size_label="XXL", quantity=1),
            ])
        self.assertEqual(ctx.exception.context["line"], 1)
        self.assertEqual(ctx.exception.context["field"], "size")

    def test_non_positive_quantity_is_invalid(self):
        for quantity in (0, -2):
            with self.assertRaises(InvalidLineItem) as ctx:
                self.ledger.record_sale(
                    self.client_obj.pk,
                    [LineInput(product_id=self.product.pk, size_label="M", quantity=quantity)],
                )
            self.assertEqual(ctx.exception.context["field"], "quantity")

    def test_size_of_another_product_is_invalid(self):
        other = make_product(name="Buzo", sizes={"S": 3})
        foreign_size = other.sizes.get()
        with self.assertRaises(InvalidLineItem):
            self.ledger.record_sale(
                self.client_obj.pk,
                [LineInput(product_id=self.product.pk, size_id=foreign_size.pk, quantity=1)],
            )

    def test_single_size_product_does_not_need_size(self):
        cap = make_product(name="Gorra", price="12000.00", sizes={"UNICA": 4})
        self.ledger.record_sale(self.client_obj.pk, [LineInput(product_id=cap.pk, quantity=1)])
        self.assertEqual(stock(cap, "UNICA"), 3)

    def test_sale_writes_out_movements(self):
        result = self.ledger.record_sale(
            self.client_obj.pk, [LineInput(product_id=self.product.pk, size_label="M", quantity=3)]
        )
        movement = StockMovement.objects.get(source=StockMovement.SOURCE_SALE, source_id=result.id)
        self.assertEqual(movement.direction, StockMovement.OUT)
        self.assertEqual(movement.quantity, 3)
        self.assertEqual(movement.created_by, self.user)


class VoidSaleTests(TestCase):
    def setUp(self):
        self.product = make_product(sizes={"M": 5})
        self.client_obj = make_client()
        self.ledger = StockLedger()

    def test_scenarios_a_and_b(self):
        result = self.ledger.record_sale(
            self.client_obj.pk, [LineInput(product_id=self.product.pk, size_label="M", quantity=3)]
        )
        self.assertEqual(stock(self.product, "M"), 2)
        self.assertEqual(result.total, 3 * self.product.effective_price)

        self.ledger.void_sale(result.id, "cliente desistió")

        sale = Sale.objects.get(pk=result.id)
        self.assertEqual(sale.status, Sale.Status.VOIDED)
        self.assertEqual(sale.void_reason, "cliente desistió")
        self.assertIsNotNone(sale.voided_at)
        self.assertEqual(stock(self.product, "M"), 5)

    def test_void_twice_does_not_double_increment(self):
        result = self.ledger.record_sale(
            self.client_obj.pk, [LineInput(product_id=self.product.pk, size_label="M", quantity=3)]
        )
        self.ledger.void_sale(result.id)

        with self.assertRaises(NotVoidable):
            self.ledger.void_sale(result.id)
        self.assertEqual(stock(self.product, "M"), 5)

    def test_void_unknown_sale(self):
        with self.assertRaises(NotVoidable):
            self.ledger.void_sale(424242)


# ------------------------------------------------------------
# Compras
# ------------------------------------------------------------

class PurchaseLedgerTests(TestCase):
    def setUp(self):
        self.product = make_product(sizes={"M": 1, "L": 0})
        self.supplier = make_supplier()
        self.ledger = StockLedger()

    def test_purchase_increments_stock_and_reconciles_total(self):
        result = self.ledger.record_purchase(self.supplier.pk, [
            LineInput(product_id=self.product.pk, size_label="M", quantity=10, unit_price=Decimal("8000")),
            LineInput(product_id=self.product.pk, size_label="l", quantity=4, unit_price=Decimal("8500.50")),
        ], payment_method="Transferencia")

        self.assertEqual(stock(self.product, "M"), 11)
        self.assertEqual(stock(self.product, "L"), 4)
        self.assertEqual(result.total, Decimal("114002.00"))

        purchase = Purchase.objects.get(pk=result.id)
        self.assertTrue(purchase.is_active)
        self.assertEqual(purchase.total, sum(line.subtotal for line in purchase.lines.all()))
        # precio de venta por defecto: el del producto
        self.assertEqual(purchase.lines.first().unit_sale_price, self.product.price)

    def test_scenario_e_empty_purchase(self):
        with self.assertRaises(EmptyOrder):
            self.ledger.record_purchase(self.supplier.pk, [])
        self.assertFalse(Purchase.objects.exists())
        self.assertFalse(PurchaseLine.objects.exists())

    def test_unknown_supplier(self):
        with self.assertRaises(InvalidReference) as ctx:
            self.ledger.record_purchase(
                987654, [LineInput(product_id=self.product.pk, size_label="M", quantity=1, unit_price=1)]
            )
        self.assertEqual(ctx.exception.context["supplier_id"], 987654)

    def test_non_positive_unit_price_is_invalid(self):
        with self.assertRaises(InvalidLineItem) as ctx:
            self.ledger.record_purchase(self.supplier.pk, [
                LineInput(product_id=self.product.pk, size_label="M", quantity=1, unit_price=Decimal("0")),
            ])
        self.assertEqual(ctx.exception.context["field"], "unit_price")
        self.assertEqual(ctx.exception.context["line"], 0)
        self.assertEqual(stock(self.product, "M"), 1)

    def test_price_that_rounds_to_zero_is_invalid(self):
        with self.assertRaises(InvalidLineItem) as ctx:
            self.ledger.record_purchase(self.supplier.pk, [
                LineInput(product_id=self.product.pk, size_label="M", quantity=1, unit_price=Decimal("0.004")),
            ])
        self.assertEqual(ctx.exception.context["field"], "unit_price")

        with self.assertRaises(InvalidLineItem) as ctx:
            self.ledger.record_purchase(self.supplier.pk, [
                LineInput(product_id=self.product.pk, size_label="M", quantity=1,
                          unit_price=Decimal("10"), unit_sale_price=Decimal("0.001")),
            ])
        self.assertEqual(ctx.exception.context["field"], "unit_sale_price")
        self.assertFalse(Purchase.objects.exists())
        self.assertEqual(stock(self.product, "M"), 1)

    def test_unknown_product_is_invalid_line(self):
        with self.assertRaises(InvalidLineItem) as ctx:
            self.ledger.record_purchase(self.supplier.pk, [
                LineInput(product_id=555555, size_label="M", quantity=1, unit_price=Decimal("10")),
            ])
        self.assertEqual(ctx.exception.context["field"], "product_id")

    def test_purchase_void_round_trip(self):
        result = self.ledger.record_purchase(self.supplier.pk, [
            LineInput(product_id=self.product.pk, size_label="M", quantity=3, unit_price=Decimal("100")),
        ])
        self.ledger.void_purchase(result.id, "factura errada")

        purchase = Purchase.objects.get(pk=result.id)
        self.assertFalse(purchase.is_active)
        self.assertEqual(purchase.void_reason, "factura errada")
        self.assertEqual(stock(self.product, "M"), 1)

        with self.assertRaises(NotVoidable):
            self.ledger.void_purchase(result.id, "otra vez")
        self.assertEqual(stock(self.product, "M"), 1)

    def test_void_purchase_rejected_when_goods_already_sold(self):
        result = self.ledger.record_purchase(self.supplier.pk, [
            LineInput(product_id=self.product.pk, size_label="L", quantity=2, unit_price=Decimal("100")),
        ])
        self.ledger.record_sale(
            make_client().pk, [LineInput(product_id=self.product.pk, size_label="L", quantity=2)]
        )

        with self.assertRaises(InsufficientStock):
            self.ledger.void_purchase(result.id, "devolución a proveedor")

        self.assertTrue(Purchase.objects.get(pk=result.id).is_active)
        self.assertEqual(stock(self.product, "L"), 0)


# ------------------------------------------------------------
# Devoluciones
# ------------------------------------------------------------

class ReturnLedgerTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="caja", password="clave-segura-1")
        self.product = make_product(sizes={"M": 5})
        self.client_obj = make_client()
        self.ledger = StockLedger(user=self.user)
        self.sale = self.ledger.record_sale(
            self.client_obj.pk, [LineInput(product_id=self.product.pk, size_label="M", quantity=3)]
        )

    def test_scenario_c_return_restocks_and_refunds(self):
        result = self.ledger.record_return(self.sale.id, self.product.pk, 2, "defecto de fábrica")

        self.assertEqual(result.total, Decimal("40000.00"))
        self.assertEqual(stock(self.product, "M"), 4)
        return_order = Return.objects.get(pk=result.id)
        self.assertTrue(return_order.is_active)
        self.assertEqual(return_order.size.label, "M")

    def test_scenario_d_return_more_than_sold(self):
        with self.assertRaises(InvalidReturnRequest):
            self.ledger.record_return(self.sale.id, self.product.pk, 4, "defecto de fábrica")
        self.assertEqual(stock(self.product, "M"), 2)
        self.assertFalse(Return.objects.exists())

    def test_returns_accumulate_against_sold_quantity(self):
        self.ledger.record_return(self.sale.id, self.product.pk, 3, "defecto de fábrica")

        with self.assertRaises(InvalidReturnRequest) as ctx:
            self.ledger.record_return(self.sale.id, self.product.pk, 3, "defecto de fábrica")
        self.assertEqual(ctx.exception.context["returned"], 3)

        with self.assertRaises(InvalidReturnRequest):
            self.ledger.record_return(self.sale.id, self.product.pk, 1, "defecto de fábrica")

        self.assertEqual(stock(self.product, "M"), 5)
        self.assertEqual(Return.objects.count(), 1)

    def test_voided_return_frees_quantity_but_blocks_reactivation(self):
        first = self.ledger.record_return(self.sale.id, self.product.pk, 2, "defecto de fábrica")
        self.ledger.toggle_return_status(first.id)
        self.ledger.record_return(self.sale.id, self.product.pk, 3, "talla incorrecta")
        self.assertEqual(stock(self.product, "M"), 5)

        with self.assertRaises(InvalidReturnRequest):
            self.ledger.toggle_return_status(first.id)

        self.assertFalse(Return.objects.get(pk=first.id).is_active)
        self.assertEqual(stock(self.product, "M"), 5)

    def test_short_reason_is_rejected(self):
        with self.assertRaises(InvalidReturnRequest):
            self.ledger.record_return(self.sale.id, self.product.pk, 1, "  mal ")

    def test_product_not_in_sale(self):
        other = make_product(name="Chaqueta", sizes={"M": 1})
        with self.assertRaises(InvalidReturnRequest):
            self.ledger.record_return(self.sale.id, other.pk, 1, "no le quedó")

    def test_unknown_sale_or_product(self):
        with self.assertRaises(InvalidReference):
            self.ledger.record_return(777777, self.product.pk, 1, "defecto de fábrica")
        with self.assertRaises(InvalidReference):
            self.ledger.record_return(self.sale.id, 777777, 1, "defecto de fábrica")

    def test_product_sold_in_several_sizes_needs_size(self):
        Size.objects.create(product=self.product, label="L", quantity=2)
        sale = self.ledger.record_sale(self.client_obj.pk, [
            LineInput(product_id=self.product.pk, size_label="M", quantity=1),
            LineInput(product_id=self.product.pk, size_label="L", quantity=1),
        ])

        with self.assertRaises(InvalidReturnRequest):
            self.ledger.record_return(sale.id, self.product.pk, 1, "cambio de talla")

        size_l = Size.objects.get(product=self.product, label="L")
        self.ledger.record_return(sale.id, self.product.pk, 1, "cambio de talla", size_id=size_l.pk)
        self.assertEqual(stock(self.product, "L"), 2)

    def test_toggle_moves_stock_and_keeps_history(self):
        result = self.ledger.record_return(self.sale.id, self.product.pk, 2, "defecto de fábrica")
        self.assertEqual(stock(self.product, "M"), 4)

        return_order = self.ledger.toggle_return_status(result.id)
        self.assertFalse(return_order.is_active)
        self.assertEqual(stock(self.product, "M"), 2)

        return_order = self.ledger.toggle_return_status(result.id)
        self.assertTrue(return_order.is_active)
        self.assertEqual(stock(self.product, "M"), 4)

        history = list(return_order.status_changes.values_list("from_active", "to_active"))
        self.assertEqual(history, [(True, False), (False, True)])
        self.assertEqual(return_order.status_changes.first().changed_by, self.user)

    def test_deactivating_return_without_stock_is_rejected(self):
        result = self.ledger.record_return(self.sale.id, self.product.pk, 2, "defecto de fábrica")
        self.ledger.record_sale(
            self.client_obj.pk, [LineInput(product_id=self.product.pk, size_label="M", quantity=4)]
        )

        with self.assertRaises(InsufficientStock):
            self.ledger.toggle_return_status(result.id)

        self.assertTrue(Return.objects.get(pk=result.id).is_active)
        self.assertFalse(Return.objects.get(pk=result.id).status_changes.exists())

    def test_toggle_unknown_return(self):
        with self.assertRaises(InvalidReference):
            self.ledger.toggle_return_status(13579)
