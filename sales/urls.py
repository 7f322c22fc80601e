# sales/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import ClientViewSet, ReturnViewSet, SaleViewSet

# Definimos el namespace 'sales'
app_name = 'sales'

router = DefaultRouter()
router.register(r'clients', ClientViewSet, basename='client')
router.register(r'sales', SaleViewSet, basename='sale')
router.register(r'returns', ReturnViewSet, basename='return')

urlpatterns = [
    # ------------------------------------------------
    # API ENDPOINTS (DRF ViewSets)
    # ------------------------------------------------
    # /api/sales/{id}/void/, /api/returns/{id}/toggle/ y los /stats/ los genera el router
    path('', include(router.urls)),
]
