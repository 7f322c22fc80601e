# accounts/tests.py
from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import Permission, Role, RolePermission

User = get_user_model()


# ------------------------------------------------------------
# Helpers RBAC (reutilizados por los tests de las demás apps)
# ------------------------------------------------------------

def ensure_perm(code):
    module = code.split('_', 1)[-1].capitalize()
    perm, _ = Permission.objects.get_or_create(code=code, defaults={"name": code, "module": module})
    return perm


def make_user(username, role=None, password="clave-segura-1", **extra):
    return User.objects.create_user(
        username=username, password=password, email=f"{username}@tienda.co", role=role, **extra
    )


def login_with_perms(testcase, username, perm_codes, role_name="Vendedor"):
    """Crea rol con los permisos dados, un usuario con ese rol y lo autentica en el APIClient."""
    role, _ = Role.objects.get_or_create(name=role_name)
    for code in perm_codes:
        RolePermission.objects.get_or_create(role=role, permission=ensure_perm(code))
    user = make_user(username, role=role)
    testcase.client.force_authenticate(user=user)
    return user


# ------------------------------------------------------------
# Modelo / reglas de permisos
# ------------------------------------------------------------

class UserPermissionTests(TestCase):
    def setUp(self):
        self.role = Role.objects.create(name="Vendedor")
        RolePermission.objects.create(role=self.role, permission=ensure_perm("ver_ventas"))

    def test_role_grants_its_codes(self):
        user = make_user("ana", role=self.role)
        self.assertTrue(user.has_permission_code("ver_ventas"))
        self.assertFalse(user.has_permission_code("anular_ventas"))

    def test_inactive_role_grants_nothing(self):
        self.role.is_active = False
        self.role.save()
        user = make_user("ana", role=self.role)
        self.assertFalse(user.has_permission_code("ver_ventas"))

    def test_inactive_user_has_no_permissions(self):
        user = make_user("ana", role=self.role, is_active=False)
        self.assertFalse(user.has_permission_code("ver_ventas"))

    def test_administrator_role_passes_everything(self):
        admin_role = Role.objects.create(name=Role.ADMIN)
        user = make_user("jefe", role=admin_role)
        self.assertTrue(user.is_administrator)
        self.assertTrue(user.has_permission_code("eliminar_usuarios"))

    def test_user_without_role(self):
        user = make_user("sinrol")
        self.assertFalse(user.is_administrator)
        self.assertEqual(user.permission_codes(), set())


# ------------------------------------------------------------
# API
# ------------------------------------------------------------

class AuthApiTests(APITestCase):
    def test_obtain_token_and_call_me(self):
        make_user("ana")
        response = self.client.post("/api/token/", {"username": "ana", "password": "clave-segura-1"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        me = self.client.get("/api/users/me/")
        self.assertEqual(me.status_code, status.HTTP_200_OK)
        self.assertEqual(me.data["username"], "ana")
        self.assertEqual(me.data["permissions"], [])

    def test_anonymous_is_rejected(self):
        response = self.client.get("/api/users/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_change_own_password(self):
        user = make_user("ana")
        self.client.force_authenticate(user=user)

        response = self.client.post("/api/users/me/change-password/", {
            "current_password": "clave-segura-1", "new_password": "clave-nueva-22",
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        user.refresh_from_db()
        self.assertTrue(user.check_password("clave-nueva-22"))

    def test_change_password_checks_current(self):
        user = make_user("ana")
        self.client.force_authenticate(user=user)

        response = self.client.post("/api/users/me/change-password/", {
            "current_password": "otra-clave", "new_password": "clave-nueva-22",
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("current_password", response.data)
        user.refresh_from_db()
        self.assertTrue(user.check_password("clave-segura-1"))

    def test_change_password_rejects_short_password(self):
        self.client.force_authenticate(user=make_user("ana"))
        response = self.client.post("/api/users/me/change-password/", {
            "current_password": "clave-segura-1", "new_password": "corta",
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("new_password", response.data)


class UserApiTests(APITestCase):
    def test_create_user_hashes_password(self):
        login_with_perms(self, "admin_usuarios", ["crear_usuarios"])
        response = self.client.post("/api/users/", {
            "username": "nuevo",
            "email": "nuevo@tienda.co",
            "password": "otra-clave-99",
            "document": "10.203.040",
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertNotIn("password", response.data)
        user = User.objects.get(username="nuevo")
        self.assertTrue(user.check_password("otra-clave-99"))
        self.assertEqual(user.document, "10203040")

    def test_create_user_requires_permission(self):
        login_with_perms(self, "vendedor", ["ver_usuarios"])
        response = self.client.post("/api/users/", {
            "username": "nuevo", "email": "nuevo@tienda.co", "password": "otra-clave-99",
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_destroy_deactivates(self):
        login_with_perms(self, "admin_usuarios", ["eliminar_usuarios"])
        target = make_user("temporal")
        response = self.client.delete(f"/api/users/{target.pk}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        target.refresh_from_db()
        self.assertFalse(target.is_active)


class RoleApiTests(APITestCase):
    def test_create_role_with_permission_codes(self):
        login_with_perms(self, "admin_roles", ["crear_roles"], role_name="Recursos Humanos")
        ensure_perm("ver_ventas")
        ensure_perm("crear_ventas")

        response = self.client.post("/api/roles/", {
            "name": "Vendedor",
            "permission_codes": ["ver_ventas", "crear_ventas"],
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["permissions"], ["crear_ventas", "ver_ventas"])

    def test_unknown_permission_code_is_rejected(self):
        login_with_perms(self, "admin_roles", ["crear_roles"], role_name="Recursos Humanos")
        response = self.client.post("/api/roles/", {
            "name": "Vendedor", "permission_codes": ["no_existe"],
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_role_with_users_cannot_be_deleted(self):
        user = login_with_perms(self, "admin_roles", ["eliminar_roles"], role_name="Recursos Humanos")
        response = self.client.delete(f"/api/roles/{user.role_id}/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Role.objects.filter(pk=user.role_id).exists())
