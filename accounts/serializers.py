# accounts/serializers.py

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import serializers

from .models import Permission, Role, RolePermission
from .utils import clean_document, validar_documento

User = get_user_model()


class PermissionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Permission
        fields = ('id', 'code', 'name', 'module')


class RoleSerializer(serializers.ModelSerializer):
    """
    Rol con sus permisos. En escritura se recibe `permission_codes`
    (lista de códigos) y se reemplaza el detalle de permisos completo.
    """
    permission_codes = serializers.ListField(
        child=serializers.CharField(max_length=50), write_only=True, required=False
    )
    permissions = serializers.SerializerMethodField()

    class Meta:
        model = Role
        fields = ('id', 'name', 'description', 'is_active', 'permissions', 'permission_codes')

    def get_permissions(self, obj):
        return sorted(obj.permissions.values_list('permission__code', flat=True))

    def validate_permission_codes(self, value):
        codes = set(value)
        found = set(Permission.objects.filter(code__in=codes).values_list('code', flat=True))
        missing = codes - found
        if missing:
            raise serializers.ValidationError(f"Permisos inexistentes: {', '.join(sorted(missing))}")
        return sorted(codes)

    @transaction.atomic
    def create(self, validated_data):
        codes = validated_data.pop('permission_codes', [])
        role = Role.objects.create(**validated_data)
        self._set_permissions(role, codes)
        return role

    @transaction.atomic
    def update(self, instance, validated_data):
        codes = validated_data.pop('permission_codes', None)
        role = super().update(instance, validated_data)
        if codes is not None:
            self._set_permissions(role, codes)
        return role

    def _set_permissions(self, role, codes):
        RolePermission.objects.filter(role=role).delete()
        RolePermission.objects.bulk_create(
            RolePermission(role=role, permission=p) for p in Permission.objects.filter(code__in=codes)
        )


class UserSerializer(serializers.ModelSerializer):

    role_name = serializers.ReadOnlyField(source='role.name')

    class Meta:
        model = User
        fields = (
            'id',
            'username',
            'email',
            'first_name',
            'last_name',
            'document',
            'phone',
            'role',
            'role_name',
            'is_active',
            'created_at',
            'password',
        )
        read_only_fields = ('created_at',)
        extra_kwargs = {
            'password': {'write_only': True, 'required': False, 'min_length': 8},
            'email': {'required': True},
        }

    def validate_document(self, value):
        if not value:
            return ''
        if not validar_documento(value):
            raise serializers.ValidationError("El documento debe tener entre 5 y 15 dígitos.")
        return clean_document(value)

    def validate(self, data):
        if not self.instance and not data.get('password'):
            raise serializers.ValidationError({"password": "La contraseña es requerida."})
        return data

    def create(self, validated_data):
        """Crear la cuenta de usuario, hasheando la contraseña."""
        password = validated_data.pop('password')
        return User.objects.create_user(password=password, **validated_data)

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        user = super().update(instance, validated_data)

        if password:
            user.set_password(password)
            user.save(update_fields=['password'])

        return user


class ChangePasswordSerializer(serializers.Serializer):
    """Cambio de contraseña del propio usuario: exige la contraseña actual."""
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, min_length=8)

    def validate_current_password(self, value):
        if not self.context['request'].user.check_password(value):
            raise serializers.ValidationError("La contraseña actual es incorrecta.")
        return value

    def validate(self, data):
        if data['current_password'] == data['new_password']:
            raise serializers.ValidationError({"new_password": "La nueva contraseña debe ser distinta de la actual."})
        return data

    def save(self, **kwargs):
        user = self.context['request'].user
        user.set_password(self.validated_data['new_password'])
        user.save(update_fields=['password'])
        return user
