# tienda_project/urls.py

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    # ------------------------------------------------
    # 1. APIs (prefijo /api/)
    # ------------------------------------------------
    path('api/', include('accounts.urls')),
    path('api/', include('products.urls')),
    path('api/', include('purchases.urls')),
    path('api/', include('sales.urls')),
    path('api/', include('inventory.urls')),
    path('api/', include('core.urls')),

    # ------------------------------------------------
    # 2. Documentación Swagger
    # ------------------------------------------------
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/schema/swagger-ui/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),

    # ------------------------------------------------
    # 3. Admin
    # ------------------------------------------------
    path('admin/', admin.site.urls),
]
