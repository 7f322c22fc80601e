# accounts/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models


class Role(models.Model):
    """Rol de usuario (Administrador, Vendedor, Gestor de Inventario, ...)."""
    ADMIN = 'Administrador'

    NAME_CHOICES = (
        ('Administrador', 'Administrador'),
        ('Vendedor', 'Vendedor'),
        ('Gestor de Inventario', 'Gestor de Inventario'),
        ('Recursos Humanos', 'Recursos Humanos'),
        ('Gestor de Clientes', 'Gestor de Clientes'),
        ('Usuario', 'Usuario'),
    )

    name = models.CharField(max_length=50, unique=True, choices=NAME_CHOICES)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name

    def permission_codes(self):
        """Códigos de permiso del rol. Un rol inactivo no otorga nada."""
        if not self.is_active:
            return set()
        return set(self.permissions.values_list('permission__code', flat=True))


class Permission(models.Model):
    """Permiso atómico (ej: ver_ventas, crear_compras) agrupado por módulo."""
    MODULE_CHOICES = (
        ('Dashboard', 'Dashboard'),
        ('Categorías', 'Categorías'),
        ('Productos', 'Productos'),
        ('Proveedores', 'Proveedores'),
        ('Compras', 'Compras'),
        ('Clientes', 'Clientes'),
        ('Ventas', 'Ventas'),
        ('Devoluciones', 'Devoluciones'),
        ('Usuarios', 'Usuarios'),
        ('Roles', 'Roles'),
    )

    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=150)
    module = models.CharField(max_length=50, choices=MODULE_CHOICES)

    class Meta:
        ordering = ['module', 'code']

    def __str__(self):
        return self.code


class RolePermission(models.Model):
    """Detalle de permisos por rol."""
    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name='permissions')
    permission = models.ForeignKey(Permission, on_delete=models.CASCADE, related_name='role_links')

    class Meta:
        unique_together = ('role', 'permission')
        ordering = ['role__name', 'permission__code']

    def __str__(self):
        return f"{self.role.name} → {self.permission.code}"


class User(AbstractUser):
    """Usuario del sistema con rol asignado."""
    role = models.ForeignKey(Role, on_delete=models.PROTECT, null=True, blank=True, related_name='users')
    document = models.CharField(max_length=15, blank=True, default='')
    phone = models.CharField(max_length=20, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    REQUIRED_FIELDS = ['email']

    def __str__(self):
        return self.username

    @property
    def is_administrator(self):
        if self.is_superuser:
            return True
        return bool(self.role_id and self.role.is_active and self.role.name == Role.ADMIN)

    def permission_codes(self):
        if not self.is_active or not self.role_id:
            return set()
        return self.role.permission_codes()

    def has_permission_code(self, code):
        if not self.is_active:
            return False
        if self.is_administrator:
            return True
        return code in self.permission_codes()
