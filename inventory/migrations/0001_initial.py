import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('products', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='StockMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('direction', models.CharField(choices=[('IN', 'Ingreso'), ('OUT', 'Egreso')], max_length=3)),
                ('quantity', models.PositiveIntegerField()),
                ('source', models.CharField(choices=[('PURCHASE', 'Compra'), ('PURCHASE_VOID', 'Anulación de compra'), ('SALE', 'Venta'), ('SALE_VOID', 'Anulación de venta'), ('RETURN', 'Devolución'), ('RETURN_TOGGLE', 'Cambio de estado de devolución')], db_index=True, max_length=20)),
                ('source_id', models.PositiveBigIntegerField()),
                ('note', models.CharField(blank=True, default='', max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='stock_movements', to=settings.AUTH_USER_MODEL)),
                ('size', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='products.size')),
            ],
            options={
                'ordering': ['-created_at', '-id'],
                'indexes': [models.Index(fields=['source', 'source_id'], name='stock_mv_source_idx')],
                'constraints': [models.CheckConstraint(condition=models.Q(('quantity__gt', 0)), name='inventory_movement_quantity_positive')],
            },
        ),
    ]
