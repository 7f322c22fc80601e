# core/tests.py
from decimal import Decimal

from django.test import SimpleTestCase, override_settings
from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.test import APITestCase

from accounts.models import Role
from accounts.tests import login_with_perms, make_user
from core.exceptions import api_exception_handler
from inventory.exceptions import InsufficientStock, NotVoidable
from inventory.inputs import LineInput
from inventory.ledger import StockLedger
from inventory.tests import make_client, make_product


class ExceptionHandlerTests(SimpleTestCase):
    def test_ledger_error_is_rendered_with_kind_and_context(self):
        exc = InsufficientStock("Sin stock", product_id=1, size_id=2, available=0, requested=3)

        response = api_exception_handler(exc, {})

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data, {
            "kind": "InsufficientStock",
            "detail": "Sin stock",
            "product_id": 1,
            "size_id": 2,
            "available": 0,
            "requested": 3,
        })

    def test_default_message(self):
        response = api_exception_handler(NotVoidable(), {})
        self.assertEqual(response.data["kind"], "NotVoidable")
        self.assertEqual(response.data["detail"], NotVoidable.default_detail)

    def test_other_errors_use_drf_format(self):
        response = api_exception_handler(NotFound(), {})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertNotIn("kind", response.data)

    def test_unknown_exceptions_are_not_handled(self):
        self.assertIsNone(api_exception_handler(ValueError("boom"), {}))


@override_settings(LOW_STOCK_THRESHOLD=3)
class DashboardApiTests(APITestCase):
    def test_dashboard_summary(self):
        login_with_perms(self, "gerente", ["ver_dashboard"], role_name="Usuario")
        product = make_product(sizes={"M": 10, "L": 2})
        ledger = StockLedger()
        sale = ledger.record_sale(make_client().pk, [LineInput(product_id=product.pk, size_label="M", quantity=1)])
        voided = ledger.record_sale(make_client(document="55667788").pk, [
            LineInput(product_id=product.pk, size_label="M", quantity=2),
        ])
        ledger.void_sale(voided.id)

        response = self.client.get("/api/dashboard/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["counts"]["sales"], 2)
        self.assertEqual(response.data["counts"]["products"], 1)
        self.assertEqual(Decimal(response.data["sales_today"]), sale.total)
        self.assertEqual(Decimal(response.data["sales_month"]), sale.total)
        self.assertEqual([row["label"] for row in response.data["low_stock"]], ["L"])
        self.assertEqual(len(response.data["latest_sales"]), 2)

    def test_dashboard_requires_permission(self):
        login_with_perms(self, "cajero", ["ver_ventas"])
        response = self.client.get("/api/dashboard/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_administrator_sees_dashboard(self):
        admin = make_user("jefe", role=Role.objects.create(name=Role.ADMIN))
        self.client.force_authenticate(user=admin)
        response = self.client.get("/api/dashboard/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
