# accounts/permissions.py

from rest_framework.permissions import BasePermission


def crud_permissions(module):
    """
    Mapa acción DRF -> código de permiso para un ViewSet CRUD estándar.
    crud_permissions('productos') -> {'list': 'ver_productos', ...}
    """
    return {
        'list': f'ver_{module}',
        'retrieve': f'ver_{module}',
        'create': f'crear_{module}',
        'update': f'editar_{module}',
        'partial_update': f'editar_{module}',
        'destroy': f'eliminar_{module}',
    }


# ----------------------------------------------------
# A. PERMISOS BASADOS EN CLASES (Para DRF ViewSets)
# ----------------------------------------------------

class IsActiveUser(BasePermission):
    """Usuario autenticado y activo."""
    message = 'Usuario no autorizado o inactivo.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_active)


class IsAdministrator(BasePermission):
    """Permiso solo para el rol Administrador (o superusuario)."""
    message = 'Acceso restringido. Requiere el rol de Administrador.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_active and user.is_administrator)


class HasActionPermission(BasePermission):
    """
    RBAC por acción: el ViewSet declara `required_permissions`
    (acción -> código) y el rol del usuario debe incluir ese código.
    Acciones sin código declarado solo exigen usuario activo.
    """
    message = 'No tiene el permiso requerido para realizar esta acción.'

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated or not user.is_active:
            return False

        required = getattr(view, 'required_permissions', {}).get(getattr(view, 'action', None))
        if required is None:
            return True
        return user.has_permission_code(required)
