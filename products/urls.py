# products/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import CategoryViewSet, ProductImageViewSet, ProductViewSet, SizeViewSet, SupplierViewSet

app_name = 'products'

router = DefaultRouter()
router.register(r'categories', CategoryViewSet, basename='category')
router.register(r'products', ProductViewSet, basename='product')
router.register(r'sizes', SizeViewSet, basename='size')
router.register(r'product-images', ProductImageViewSet, basename='product-image')
router.register(r'suppliers', SupplierViewSet, basename='supplier')

urlpatterns = [
    # ------------------------------------------------
    # API ENDPOINTS (DRF ViewSets)
    # ------------------------------------------------
    path('', include(router.urls)),
]
