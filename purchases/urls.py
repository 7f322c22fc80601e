# purchases/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import PurchaseViewSet

app_name = 'purchases'

router = DefaultRouter()
router.register(r'purchases', PurchaseViewSet, basename='purchase')

urlpatterns = [
    # POST /api/purchases/{id}/void/ y GET /api/purchases/stats/ los genera el router
    path('', include(router.urls)),
]
