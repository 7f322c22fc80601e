# inventory/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import StockMovementViewSet

app_name = 'inventory'

router = DefaultRouter()
router.register(r'stock-movements', StockMovementViewSet, basename='stock-movement')

urlpatterns = [
    path('', include(router.urls)),
]
