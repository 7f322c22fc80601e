# accounts/views.py

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .models import Permission, Role, User
from .permissions import HasActionPermission, IsActiveUser, crud_permissions
from .serializers import ChangePasswordSerializer, PermissionSerializer, RoleSerializer, UserSerializer


class UserViewSet(viewsets.ModelViewSet):
    """
    CRUD de Usuarios (API).
    Rutas: /api/users/, /api/users/me/, /api/users/me/change-password/
    """
    queryset = User.objects.all().select_related('role').order_by('username')
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated, HasActionPermission]
    required_permissions = crud_permissions('usuarios')
    filterset_fields = ['role', 'is_active']
    search_fields = ['username', 'email', 'first_name', 'last_name', 'document']

    def get_permissions(self):
        if self.action in ('me', 'change_password'):
            return [IsAuthenticated(), IsActiveUser()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.action == 'change_password':
            return ChangePasswordSerializer
        return UserSerializer

    def perform_destroy(self, instance):
        """Los usuarios no se borran: se desactivan."""
        if instance.pk == self.request.user.pk:
            raise PermissionDenied("No puedes desactivar tu propia cuenta.")
        instance.is_active = False
        instance.save(update_fields=['is_active'])

    @action(detail=False, methods=['get'])
    def me(self, request):
        """GET /api/users/me/ - Datos del usuario autenticado y sus permisos."""
        data = self.get_serializer(request.user).data
        data['permissions'] = sorted(request.user.permission_codes())
        return Response(data, status=status.HTTP_200_OK)

    @action(detail=False, methods=['post'], url_path='me/change-password')
    def change_password(self, request):
        """POST /api/users/me/change-password/ - Cambia la contraseña del usuario autenticado."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({"detail": "Contraseña actualizada."}, status=status.HTTP_200_OK)


class RoleViewSet(viewsets.ModelViewSet):
    """
    CRUD de Roles con su detalle de permisos.
    Rutas: /api/roles/
    """
    queryset = Role.objects.all().prefetch_related('permissions__permission')
    serializer_class = RoleSerializer
    permission_classes = [IsAuthenticated, HasActionPermission]
    required_permissions = crud_permissions('roles')
    filterset_fields = ['is_active']
    search_fields = ['name']

    def perform_destroy(self, instance):
        if instance.users.exists():
            raise PermissionDenied("No se puede eliminar un rol con usuarios asignados.")
        instance.delete()


class PermissionViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Catálogo de permisos (solo lectura). Rutas: /api/permissions/"""
    queryset = Permission.objects.all()
    serializer_class = PermissionSerializer
    permission_classes = [IsAuthenticated, HasActionPermission]
    required_permissions = {'list': 'ver_roles', 'retrieve': 'ver_roles'}
    filterset_fields = ['module']
    pagination_class = None
