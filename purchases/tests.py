# purchases/tests.py
from decimal import Decimal

from rest_framework import status
from rest_framework.test import APITestCase

from accounts.tests import login_with_perms
from inventory.models import StockMovement
from inventory.tests import make_product, make_supplier, stock
from purchases.models import Purchase


class PurchaseApiTests(APITestCase):
    def setUp(self):
        self.user = login_with_perms(self, "compras", [
            "ver_compras", "crear_compras", "anular_compras",
        ], role_name="Gestor de Inventario")
        self.product = make_product(sizes={"M": 0, "L": 1})
        self.supplier = make_supplier()

    def _payload(self, **overrides):
        data = {
            "supplier_id": self.supplier.pk,
            "payment_method": "Transferencia",
            "items": [
                {"product_id": self.product.pk, "size_label": "M", "quantity": 6, "unit_price": "9000.00"},
                {"product_id": self.product.pk, "size_label": "L", "quantity": 2, "unit_price": "9500.00",
                 "unit_sale_price": "25000.00"},
            ],
        }
        data.update(overrides)
        return data

    def test_create_returns_id_and_total(self):
        response = self.client.post("/api/purchases/", self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["total"], "73000.00")
        purchase = Purchase.objects.get(pk=response.data["id"])
        self.assertEqual(purchase.created_by, self.user)
        self.assertEqual(purchase.lines.count(), 2)
        self.assertEqual(stock(self.product, "M"), 6)
        self.assertEqual(stock(self.product, "L"), 3)

    def test_empty_items_is_typed_error(self):
        response = self.client.post("/api/purchases/", self._payload(items=[]), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["kind"], "EmptyOrder")
        self.assertIn("detail", response.data)
        self.assertFalse(Purchase.objects.exists())

    def test_invalid_line_reports_line_and_field(self):
        payload = self._payload()
        payload["items"][1]["quantity"] = 0

        response = self.client.post("/api/purchases/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["kind"], "InvalidLineItem")
        self.assertEqual(response.data["line"], 1)
        self.assertEqual(response.data["field"], "quantity")
        self.assertEqual(stock(self.product, "M"), 0)

    def test_malformed_body_is_plain_validation_error(self):
        response = self.client.post("/api/purchases/", {"items": "nada"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertNotIn("kind", response.data)
        self.assertIn("supplier_id", response.data)

    def test_void_and_void_again(self):
        created = self.client.post("/api/purchases/", self._payload(), format="json")
        purchase_id = created.data["id"]

        response = self.client.post(f"/api/purchases/{purchase_id}/void/", {"reason": "factura duplicada"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["is_active"])
        self.assertEqual(stock(self.product, "M"), 0)
        self.assertEqual(stock(self.product, "L"), 1)
        self.assertEqual(
            StockMovement.objects.filter(source=StockMovement.SOURCE_PURCHASE_VOID, source_id=purchase_id).count(), 2
        )

        response = self.client.post(f"/api/purchases/{purchase_id}/void/", {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["kind"], "NotVoidable")

    def test_stats_and_supplier_filter(self):
        self.client.post("/api/purchases/", self._payload(), format="json")
        other = make_supplier(document_number="800999111", name="Cueros SAS")
        self.client.post("/api/purchases/", self._payload(supplier_id=other.pk), format="json")

        response = self.client.get("/api/purchases/", {"supplier": other.pk})
        self.assertEqual(response.data["count"], 1)

        stats = self.client.get("/api/purchases/stats/").data
        self.assertEqual(stats["count"], 2)
        self.assertEqual(stats["active"], 2)
        self.assertEqual(Decimal(stats["invested"]), Decimal("146000.00"))

    def test_void_requires_permission(self):
        login_with_perms(self, "solo_lectura", ["ver_compras"], role_name="Usuario")
        purchase_id = Purchase.objects.create(supplier=self.supplier).pk
        response = self.client.post(f"/api/purchases/{purchase_id}/void/", {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
