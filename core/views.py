# core/views.py

from django.conf import settings
from django.db.models import Sum
from django.utils import timezone
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.models import User
from accounts.permissions import HasActionPermission
from products.models import Category, Product, Size, Supplier
from purchases.models import Purchase
from sales.models import Client, Return, Sale

# ----------------------------------------------------
# Dashboard (ViewSet)
# ----------------------------------------------------


class DashboardViewSet(viewsets.ViewSet):
    """
    Estadísticas generales para el panel principal.
    Ruta: GET /api/dashboard/
    """
    permission_classes = [IsAuthenticated, HasActionPermission]
    required_permissions = {'list': 'ver_dashboard'}

    def list(self, request):
        now = timezone.localtime()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        start_of_month = start_of_day.replace(day=1)
        threshold = getattr(settings, 'LOW_STOCK_THRESHOLD', 10)

        completed = Sale.objects.filter(status=Sale.Status.COMPLETED)

        counts = {
            'categories': Category.objects.count(),
            'products': Product.objects.count(),
            'suppliers': Supplier.objects.count(),
            'clients': Client.objects.count(),
            'purchases': Purchase.objects.count(),
            'sales': Sale.objects.count(),
            'returns': Return.objects.count(),
            'users': User.objects.count(),
        }

        sales_today = completed.filter(created_at__gte=start_of_day).aggregate(total=Sum('total'))['total']
        sales_month = completed.filter(created_at__gte=start_of_month).aggregate(total=Sum('total'))['total']
        purchases_month = Purchase.objects.filter(
            is_active=True, created_at__gte=start_of_month
        ).aggregate(total=Sum('total'))['total']

        low_stock = (
            Size.objects.filter(quantity__lt=threshold, product__is_active=True)
            .select_related('product')
            .order_by('quantity', 'product__name')[:10]
        )
        latest_sales = Sale.objects.select_related('client').order_by('-created_at', '-id')[:5]

        return Response({
            'counts': counts,
            'sales_today': str(sales_today or 0),
            'sales_month': str(sales_month or 0),
            'purchases_month': str(purchases_month or 0),
            'low_stock_threshold': threshold,
            'low_stock': [
                {
                    'size_id': size.pk,
                    'product_id': size.product_id,
                    'product': size.product.name,
                    'label': size.label,
                    'quantity': size.quantity,
                }
                for size in low_stock
            ],
            'latest_sales': [
                {
                    'id': sale.pk,
                    'client': sale.client.name,
                    'total': str(sale.total),
                    'status': sale.status,
                    'created_at': sale.created_at,
                }
                for sale in latest_sales
            ],
        }, status=status.HTTP_200_OK)
