"""
Initial migration for Crossdock models.
"""

from decimal import Decimal
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create Crossdock models: Manifest, Pallet, InventoryLine, DemandLine, Container, ContainerLine, AuditEvent."""

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Manifest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('file_name', models.CharField(max_length=255, verbose_name='Archivo')),
                ('status', models.CharField(choices=[('draft', 'Borrador'), ('in_progress', 'En Progreso'), ('done', 'Completada')], db_index=True, default='draft', max_length=20, verbose_name='Estado')),
                ('total_lines', models.PositiveIntegerField(default=0, verbose_name='Líneas totales')),
                ('completed_lines', models.PositiveIntegerField(default=0, verbose_name='Líneas completadas')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Creado por')),
            ],
            options={
                'verbose_name': 'Carga',
                'verbose_name_plural': 'Cargas',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Pallet',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=50, unique=True, verbose_name='Código')),
                ('location', models.CharField(blank=True, default='', max_length=50, verbose_name='Ubicación')),
                ('status', models.CharField(choices=[('open', 'Abierto'), ('depleted', 'Agotado'), ('blocked', 'Bloqueado')], db_index=True, default='open', max_length=20, verbose_name='Estado')),
                ('locked_at', models.DateTimeField(blank=True, null=True, verbose_name='Tomado en')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('locked_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Tomado por')),
            ],
            options={
                'verbose_name': 'Pallet',
                'verbose_name_plural': 'Pallets',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='InventoryLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sku', models.CharField(max_length=64, verbose_name='SKU')),
                ('qty_initial', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Cantidad inicial')),
                ('qty_available', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Cantidad disponible')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('pallet', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory', to='crossdock.pallet', verbose_name='Pallet')),
            ],
            options={
                'verbose_name': 'Inventario de pallet',
                'verbose_name_plural': 'Inventario de pallets',
                'ordering': ['pallet', 'sku'],
                'constraints': [
                    models.UniqueConstraint(fields=('pallet', 'sku'), name='unique_inventory_pallet_sku'),
                    models.CheckConstraint(condition=models.Q(('qty_available__gte', 0), ('qty_available__lte', models.F('qty_initial'))), name='inventory_available_within_initial'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DemandLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('pallet_code', models.CharField(db_index=True, max_length=50, verbose_name='Pallet')),
                ('sku', models.CharField(max_length=64, verbose_name='SKU')),
                ('barcode', models.CharField(blank=True, default='', max_length=64, verbose_name='Código de barra')),
                ('description', models.CharField(blank=True, default='', max_length=255, verbose_name='Descripción')),
                ('destination', models.CharField(max_length=64, verbose_name='Tienda')),
                ('truck', models.CharField(blank=True, default='', max_length=64, verbose_name='Camión')),
                ('qty_to_send', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Cantidad a enviar')),
                ('qty_confirmed', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Cantidad confirmada')),
                ('status', models.CharField(choices=[('pending', 'Pendiente'), ('partial', 'Parcial'), ('done', 'Completa')], db_index=True, default='pending', max_length=20, verbose_name='Estado')),
                ('done_at', models.DateTimeField(blank=True, null=True, verbose_name='Completada en')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('done_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Completada por')),
                ('manifest', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='crossdock.manifest', verbose_name='Carga')),
            ],
            options={
                'verbose_name': 'Línea de pedido',
                'verbose_name_plural': 'Líneas de pedido',
                'ordering': ['pallet_code', 'sku', 'destination'],
                'indexes': [
                    models.Index(fields=['pallet_code', 'sku', 'status'], name='demand_pallet_sku_status_idx'),
                    models.Index(fields=['pallet_code', 'barcode'], name='demand_pallet_barcode_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('qty_confirmed__gte', 0), ('qty_confirmed__lte', models.F('qty_to_send'))), name='demand_confirmed_within_to_send'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Container',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=20, unique=True, verbose_name='Código')),
                ('destination', models.CharField(max_length=64, verbose_name='Tienda')),
                ('status', models.CharField(choices=[('open', 'Abierto'), ('closed', 'Cerrado'), ('dispatched', 'Despachado')], db_index=True, default='open', max_length=20, verbose_name='Estado')),
                ('kind', models.CharField(choices=[('normal', 'Normal'), ('surplus', 'Sobrante')], default='normal', max_length=20, verbose_name='Tipo')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('closed_at', models.DateTimeField(blank=True, null=True, verbose_name='Cerrado en')),
                ('dispatched_at', models.DateTimeField(blank=True, null=True, verbose_name='Despachado en')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Creado por')),
                ('manifest', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='containers', to='crossdock.manifest', verbose_name='Carga')),
            ],
            options={
                'verbose_name': 'Contenedor',
                'verbose_name_plural': 'Contenedores',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['manifest', 'destination', 'status'], name='container_manifest_dest_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('kind', 'normal'), ('status', 'open')), fields=('manifest', 'destination'), name='unique_open_container_per_destination'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ContainerLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sku', models.CharField(max_length=64, verbose_name='SKU')),
                ('qty', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Cantidad')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('container', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='crossdock.container', verbose_name='Contenedor')),
                ('demand_line', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='container_lines', to='crossdock.demandline', verbose_name='Línea de pedido')),
                ('pallet', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='container_lines', to='crossdock.pallet', verbose_name='Pallet')),
            ],
            options={
                'verbose_name': 'Línea de contenedor',
                'verbose_name_plural': 'Líneas de contenedor',
                'ordering': ['created_at', 'pk'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('qty__gt', 0)), name='container_line_qty_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AuditEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('event_type', models.CharField(choices=[('scan_pallet', 'Escaneo de pallet'), ('scan_sku', 'Escaneo de SKU'), ('confirm_qty', 'Cantidad confirmada'), ('reverse', 'Reverso'), ('close', 'Cierre de contenedor'), ('unlock', 'Liberación de pallet'), ('adjust', 'Ajuste (sobrante)')], db_index=True, max_length=20, verbose_name='Evento')),
                ('sku', models.CharField(blank=True, default='', max_length=64, verbose_name='SKU')),
                ('destination', models.CharField(blank=True, default='', max_length=64, verbose_name='Tienda')),
                ('qty', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True, verbose_name='Cantidad')),
                ('raw_code', models.CharField(blank=True, default='', max_length=128, verbose_name='Código escaneado')),
                ('note', models.TextField(blank=True, default='', verbose_name='Notas')),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Fecha/Hora')),
                ('pallet', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='events', to='crossdock.pallet', verbose_name='Pallet')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Usuario')),
            ],
            options={
                'verbose_name': 'Evento',
                'verbose_name_plural': 'Eventos',
                'ordering': ['timestamp', 'pk'],
                'indexes': [
                    models.Index(fields=['pallet', 'timestamp'], name='audit_pallet_time_idx'),
                    models.Index(fields=['event_type', 'timestamp'], name='audit_type_time_idx'),
                ],
            },
        ),
    ]
