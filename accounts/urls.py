# accounts/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .views import PermissionViewSet, RoleViewSet, UserViewSet

app_name = 'accounts'

router = DefaultRouter()
router.register(r'users', UserViewSet, basename='user')
router.register(r'roles', RoleViewSet, basename='role')
router.register(r'permissions', PermissionViewSet, basename='permission')

urlpatterns = [
    # ------------------------------------------------
    # 1. AUTHENTICATION (API JWT)
    # ------------------------------------------------
    # POST /api/token/
    path('token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    # POST /api/token/refresh/
    path('token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # ------------------------------------------------
    # 2. USER / ROLE API ENDPOINTS (DRF)
    # ------------------------------------------------
    path('', include(router.urls)),
]
