# sales/tests.py
from decimal import Decimal

from rest_framework import status
from rest_framework.test import APITestCase

from accounts.tests import login_with_perms
from inventory.tests import make_client, make_product, stock
from sales.models import Client, Return, Sale


class SaleApiTests(APITestCase):
    def setUp(self):
        self.user = login_with_perms(self, "cajero", [
            "ver_ventas", "crear_ventas", "anular_ventas",
        ])
        self.product = make_product(sizes={"M": 5})
        self.client_obj = make_client()

    def _sell(self, quantity, **extra):
        payload = {
            "client_id": self.client_obj.pk,
            "payment_method": "Efectivo",
            "items": [{"product_id": self.product.pk, "size_label": "M", "quantity": quantity}],
        }
        payload.update(extra)
        return self.client.post("/api/sales/", payload, format="json")

    def test_create_sale(self):
        response = self._sell(3)

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["total"], "60000.00")
        self.assertEqual(stock(self.product, "M"), 2)
        sale = Sale.objects.get(pk=response.data["id"])
        self.assertEqual(sale.payment_method, "Efectivo")
        self.assertEqual(sale.created_by, self.user)

    def test_client_price_is_ignored(self):
        response = self._sell(1, items=[{
            "product_id": self.product.pk, "size_label": "M", "quantity": 1, "unit_price": "1.00",
        }])
        self.assertEqual(response.data["total"], "20000.00")

    def test_insufficient_stock_is_conflict(self):
        response = self._sell(6)

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["kind"], "InsufficientStock")
        self.assertEqual(response.data["available"], 5)
        self.assertEqual(response.data["product_id"], self.product.pk)
        self.assertEqual(stock(self.product, "M"), 5)

    def test_unknown_payment_method(self):
        response = self._sell(1, payment_method="Bitcoin")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("payment_method", response.data)

    def test_unknown_client_is_invalid_reference(self):
        response = self._sell(1, client_id=999999)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["kind"], "InvalidReference")

    def test_void_restores_stock(self):
        sale_id = self._sell(3).data["id"]

        response = self.client.post(f"/api/sales/{sale_id}/void/", {"reason": "error de caja"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], Sale.Status.VOIDED)
        self.assertEqual(stock(self.product, "M"), 5)

        again = self.client.post(f"/api/sales/{sale_id}/void/", {}, format="json")
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(stock(self.product, "M"), 5)

    def test_retrieve_includes_lines(self):
        sale_id = self._sell(2).data["id"]
        response = self.client.get(f"/api/sales/{sale_id}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["lines"]), 1)
        self.assertEqual(response.data["lines"][0]["unit_price"], "20000.00")

    def test_stats(self):
        self._sell(1)
        voided = self._sell(1).data["id"]
        self.client.post(f"/api/sales/{voided}/void/", {}, format="json")

        stats = self.client.get("/api/sales/stats/").data
        self.assertEqual(stats["count"], 2)
        self.assertEqual(stats["completed"], 1)
        self.assertEqual(stats["voided"], 1)
        self.assertEqual(Decimal(stats["revenue"]), Decimal("20000.00"))


class ReturnApiTests(APITestCase):
    def setUp(self):
        login_with_perms(self, "cajero", [
            "ver_ventas", "crear_ventas",
            "ver_devoluciones", "crear_devoluciones", "cambiar_estado_devoluciones",
        ])
        self.product = make_product(sizes={"M": 5})
        client_obj = make_client()
        response = self.client.post("/api/sales/", {
            "client_id": client_obj.pk,
            "items": [{"product_id": self.product.pk, "size_label": "M", "quantity": 3}],
        }, format="json")
        self.sale_id = response.data["id"]

    def _return(self, quantity, reason="defecto de fábrica"):
        return self.client.post("/api/returns/", {
            "sale_id": self.sale_id, "product_id": self.product.pk, "quantity": quantity, "reason": reason,
        }, format="json")

    def test_create_return(self):
        response = self._return(2)

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["amount"], "40000.00")
        self.assertEqual(stock(self.product, "M"), 4)

    def test_return_more_than_sold(self):
        response = self._return(4)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["kind"], "InvalidReturnRequest")
        self.assertEqual(stock(self.product, "M"), 2)

    def test_second_full_return_is_rejected(self):
        self.assertEqual(self._return(3).status_code, status.HTTP_201_CREATED)

        response = self._return(3)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["kind"], "InvalidReturnRequest")
        self.assertEqual(response.data["returned"], 3)
        self.assertEqual(stock(self.product, "M"), 5)

    def test_toggle_returns_history(self):
        return_id = self._return(2).data["id"]

        response = self.client.post(f"/api/returns/{return_id}/toggle/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["is_active"])
        self.assertEqual(len(response.data["status_changes"]), 1)
        self.assertEqual(stock(self.product, "M"), 2)

        response = self.client.post(f"/api/returns/{return_id}/toggle/")
        self.assertTrue(response.data["is_active"])
        self.assertEqual(len(response.data["status_changes"]), 2)
        self.assertEqual(stock(self.product, "M"), 4)

    def test_toggle_unknown_return(self):
        response = self.client.post("/api/returns/99999/toggle/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["kind"], "InvalidReference")

    def test_stats(self):
        self._return(1)
        second = self._return(2, reason="talla incorrecta").data["id"]
        self.client.post(f"/api/returns/{second}/toggle/")

        stats = self.client.get("/api/returns/stats/").data
        self.assertEqual(stats["count"], 2)
        self.assertEqual(stats["active"], 1)
        self.assertEqual(stats["voided"], 1)
        self.assertEqual(Decimal(stats["refunded"]), Decimal("20000.00"))
        self.assertEqual(stats["top_products"][0]["returned"], 1)
        self.assertEqual(len(stats["top_reasons"]), 2)
        self.assertEqual(Return.objects.count(), 2)


class ClientApiTests(APITestCase):
    def setUp(self):
        login_with_perms(self, "clientes", [
            "ver_clientes", "crear_clientes", "editar_clientes", "eliminar_clientes",
        ], role_name="Gestor de Clientes")

    def test_create_client_cleans_document(self):
        response = self.client.post("/api/clients/", {
            "document_type": 1, "document": "1.020.304.050", "name": "Pedro Ruiz", "city": "Medellín",
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["document"], "1020304050")

    def test_duplicate_document_is_rejected(self):
        make_client(document="1020304050")
        response = self.client.post("/api/clients/", {
            "document_type": 1, "document": "1020304050", "name": "Otro Cliente",
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("document", response.data)

    def test_document_with_letters_is_rejected(self):
        response = self.client.post("/api/clients/", {
            "document_type": 4, "document": "AB12345", "name": "Turista",
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_client_with_sales_is_deactivated_on_delete(self):
        client_obj = make_client()
        Sale.objects.create(client=client_obj)

        response = self.client.delete(f"/api/clients/{client_obj.pk}/")

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Client.objects.get(pk=client_obj.pk).is_active)
