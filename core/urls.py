# core/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import DashboardViewSet

app_name = 'core'

router = DefaultRouter()
router.register(r'dashboard', DashboardViewSet, basename='dashboard')

urlpatterns = [
    path('', include(router.urls)),
]
