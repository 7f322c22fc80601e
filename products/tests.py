# products/tests.py
from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import Role
from accounts.tests import login_with_perms, make_user
from inventory.ledger import StockLedger
from inventory.inputs import LineInput
from inventory.tests import make_client, make_product, make_supplier
from products.models import Category, Product, ProductImage, Size, Supplier


class ProductApiTests(APITestCase):
    def setUp(self):
        login_with_perms(self, "bodega", [
            "ver_productos", "crear_productos", "editar_productos", "eliminar_productos",
        ], role_name="Gestor de Inventario")

    def test_list_includes_total_stock_and_effective_price(self):
        make_product(sizes={"S": 2, "M": 3}, on_sale=True, sale_price=Decimal("15000.00"))

        response = self.client.get("/api/products/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        item = response.data["results"][0]
        self.assertEqual(item["total_stock"], 5)
        self.assertEqual(item["effective_price"], "15000.00")
        self.assertEqual({s["label"] for s in item["sizes"]}, {"S", "M"})

    def test_on_sale_requires_sale_price_or_discount(self):
        category = Category.objects.create(name="Calzado")
        response = self.client.post("/api/products/", {
            "name": "Tenis running", "category": category.pk, "price": "180000.00", "on_sale": True,
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("sale_price", response.data)

    def test_discount_percentage_sets_sale_price(self):
        category = Category.objects.create(name="Calzado")
        response = self.client.post("/api/products/", {
            "name": "Tenis running", "category": category.pk, "price": "180000.00",
            "on_sale": True, "discount_percentage": 25,
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["sale_price"], "135000.00")
        self.assertEqual(response.data["effective_price"], "135000.00")

    def test_changing_discount_recomputes_sale_price(self):
        product = make_product(price="100.00", on_sale=True, sale_price=Decimal("90.00"))
        self.assertEqual(product.discount_percentage, 10)

        response = self.client.patch(f"/api/products/{product.pk}/", {"discount_percentage": 30}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["sale_price"], "70.00")

        response = self.client.patch(f"/api/products/{product.pk}/", {"on_sale": False}, format="json")
        self.assertIsNone(response.data["sale_price"])
        self.assertIsNone(response.data["discount_percentage"])
        self.assertEqual(response.data["effective_price"], "100.00")

    def test_sizes_action(self):
        product = make_product(sizes={"38": 1, "39": 0})
        response = self.client.get(f"/api/products/{product.pk}/sizes/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s["label"] for s in response.data], ["38", "39"])

    def test_delete_product_with_history_deactivates(self):
        product = make_product(sizes={"M": 0})
        StockLedger().record_purchase(make_supplier().pk, [
            LineInput(product_id=product.pk, size_label="M", quantity=1, unit_price=Decimal("5000")),
        ])

        response = self.client.delete(f"/api/products/{product.pk}/")

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        product.refresh_from_db()
        self.assertFalse(product.is_active)

    def test_delete_product_without_history(self):
        product = make_product(sizes={"M": 0})
        response = self.client.delete(f"/api/products/{product.pk}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())


class SizeApiTests(APITestCase):
    def setUp(self):
        login_with_perms(self, "bodega", [
            "ver_productos", "crear_productos", "editar_productos", "eliminar_productos",
        ], role_name="Gestor de Inventario")
        self.product = make_product()

    def test_create_size_with_initial_stock(self):
        response = self.client.post("/api/sizes/", {
            "product": self.product.pk, "label": " xl ", "quantity": 7,
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["label"], "XL")
        self.assertEqual(Size.objects.get(pk=response.data["id"]).quantity, 7)

    def test_negative_initial_stock_is_rejected(self):
        response = self.client.post("/api/sizes/", {
            "product": self.product.pk, "label": "M", "quantity": -1,
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_quantity_is_read_only_on_update(self):
        size = Size.objects.create(product=self.product, label="M", quantity=4)
        response = self.client.patch(f"/api/sizes/{size.pk}/", {"quantity": 100, "label": "m2"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        size.refresh_from_db()
        self.assertEqual(size.quantity, 4)
        self.assertEqual(size.label, "M2")

    def test_size_with_stock_cannot_be_deleted(self):
        size = Size.objects.create(product=self.product, label="M", quantity=4)
        response = self.client.delete(f"/api/sizes/{size.pk}/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Size.objects.filter(pk=size.pk).exists())


class SupplierApiTests(APITestCase):
    def test_create_and_search(self):
        login_with_perms(self, "compras", ["ver_proveedores", "crear_proveedores"], role_name="Gestor de Inventario")
        response = self.client.post("/api/suppliers/", {
            "name": "Calzado Andino", "document_type": "NIT", "document_number": "900.555.111-2",
            "email": "contacto@andino.co",
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["document_number"], "9005551112")

        response = self.client.get("/api/suppliers/", {"search": "Andino"})
        self.assertEqual(response.data["count"], 1)

    def test_short_document_is_rejected(self):
        login_with_perms(self, "compras", ["crear_proveedores"], role_name="Gestor de Inventario")
        response = self.client.post("/api/suppliers/", {
            "name": "X", "document_type": "CC", "document_number": "12", "email": "x@x.co",
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Supplier.objects.exists())

    def test_requires_permission(self):
        login_with_perms(self, "cajero", ["ver_ventas"])
        response = self.client.get("/api/suppliers/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class SizeHistoryTests(APITestCase):
    def test_sale_history_blocks_size_delete(self):
        login_with_perms(self, "bodega", ["eliminar_productos"], role_name="Gestor de Inventario")
        product = make_product(sizes={"M": 1})
        StockLedger().record_sale(make_client().pk, [LineInput(product_id=product.pk, size_label="M", quantity=1)])
        size = product.sizes.get()

        response = self.client.delete(f"/api/sizes/{size.pk}/")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Size.objects.filter(pk=size.pk).exists())


class PromotionTests(TestCase):
    def test_discount_percentage_fills_sale_price_and_drives_sales(self):
        product = make_product(price="100.00", sizes={"M": 2}, on_sale=True, discount_percentage=20)

        self.assertEqual(product.sale_price, Decimal("80.00"))
        self.assertEqual(product.effective_price, Decimal("80.00"))
        result = StockLedger().record_sale(
            make_client().pk, [LineInput(product_id=product.pk, size_label="M", quantity=1)]
        )
        self.assertEqual(result.total, Decimal("80.00"))

    def test_sale_price_fills_rounded_percentage(self):
        product = make_product(price="30000.00", on_sale=True, sale_price=Decimal("19999.00"))
        self.assertEqual(product.discount_percentage, 33)

    def test_turning_promotion_off_clears_both_values(self):
        product = make_product(price="100.00", on_sale=True, discount_percentage=50)
        product.on_sale = False
        product.save()

        product.refresh_from_db()
        self.assertIsNone(product.sale_price)
        self.assertIsNone(product.discount_percentage)
        self.assertEqual(product.effective_price, Decimal("100.00"))


class ProductImageApiTests(APITestCase):
    def setUp(self):
        login_with_perms(self, "bodega", [
            "ver_productos", "crear_productos", "editar_productos", "eliminar_productos",
        ], role_name="Gestor de Inventario")
        self.product = make_product()

    def test_create_and_list_by_product(self):
        response = self.client.post("/api/product-images/", {
            "product": self.product.pk, "url": "https://cdn.tienda.co/camiseta-frente.jpg",
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        make_product(name="Chaqueta").images.create(url="https://cdn.tienda.co/chaqueta.jpg")

        response = self.client.get("/api/product-images/", {"product": self.product.pk})

        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["url"], "https://cdn.tienda.co/camiseta-frente.jpg")

    def test_invalid_url_is_rejected(self):
        response = self.client.post("/api/product-images/", {
            "product": self.product.pk, "url": "no-es-una-url",
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("url", response.data)

    def test_bulk_create_shows_in_product(self):
        response = self.client.post("/api/product-images/bulk/", {
            "product": self.product.pk,
            "urls": ["https://cdn.tienda.co/a.jpg", "https://cdn.tienda.co/b.jpg"],
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(ProductImage.objects.filter(product=self.product).count(), 2)
        detail = self.client.get(f"/api/products/{self.product.pk}/")
        self.assertEqual(detail.data["images"], ["https://cdn.tienda.co/a.jpg", "https://cdn.tienda.co/b.jpg"])

    def test_images_require_permission(self):
        login_with_perms(self, "cajero", ["ver_ventas"])
        response = self.client.post("/api/product-images/bulk/", {
            "product": self.product.pk, "urls": ["https://cdn.tienda.co/a.jpg"],
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_only_administrator_deletes_images(self):
        image = self.product.images.create(url="https://cdn.tienda.co/a.jpg")

        response = self.client.delete(f"/api/product-images/{image.pk}/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        admin = make_user("jefe", role=Role.objects.create(name=Role.ADMIN))
        self.client.force_authenticate(user=admin)
        response = self.client.delete(f"/api/product-images/{image.pk}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ProductImage.objects.exists())
