import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        ('locations', '0001_initial'),
        ('staff', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='TableCategory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('table_count', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('branch', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='table_categories', to='locations.branch')),
            ],
            options={
                'db_table': 'table_categories',
                'verbose_name_plural': 'table categories',
                'unique_together': {('branch', 'name')},
            },
        ),
        migrations.CreateModel(
            name='Table',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('table_number', models.CharField(max_length=120)),
                ('status', models.CharField(choices=[('Free', 'Free'), ('Occupied', 'Occupied')], default='Free', max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('branch', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tables', to='locations.branch')),
                ('category', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tables', to='pos.tablecategory')),
            ],
            options={
                'db_table': 'tables',
                'ordering': ['category', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_id', models.CharField(max_length=40, unique=True)),
                ('bill_no', models.CharField(max_length=30, unique=True)),
                ('tab', models.CharField(choices=[('stock', 'Stock Order'), ('liveOrder', 'Live Order'), ('tableOrder', 'Table Order'), ('billing', 'Billing')], max_length=20)),
                ('payment_method', models.CharField(max_length=50)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('completed', 'Completed'), ('neworder', 'New Order'), ('pending', 'Pending'), ('delivered', 'Delivered'), ('received', 'Received')], default='draft', max_length=20)),
                ('subtotal', models.DecimalField(decimal_places=2, max_digits=12)),
                ('total_gst', models.DecimalField(decimal_places=2, max_digits=12)),
                ('total_with_gst', models.DecimalField(decimal_places=2, max_digits=12)),
                ('total_items', models.PositiveIntegerField()),
                ('delivery_datetime', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('delivered_at', models.DateTimeField(blank=True, null=True)),
                ('received_at', models.DateTimeField(blank=True, null=True)),
                ('branch', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to='locations.branch')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders', to=settings.AUTH_USER_MODEL)),
                ('table', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders', to='pos.table')),
                ('waiter', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders', to='staff.employee')),
            ],
            options={
                'db_table': 'orders',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['branch', 'tab', 'created_at'], name='orders_branch_tab_created_idx')],
            },
        ),
        migrations.AddField(
            model_name='table',
            name='current_order',
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='pos.order'),
        ),
        migrations.CreateModel(
            name='OrderItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('position', models.PositiveIntegerField(default=0)),
                ('name', models.CharField(max_length=255)),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=10)),
                ('sending_qty', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=10)),
                ('price', models.DecimalField(decimal_places=2, max_digits=10)),
                ('unit', models.CharField(max_length=20)),
                ('gst_rate', models.DecimalField(blank=True, decimal_places=2, help_text='NULL for non-GST items', max_digits=5, null=True)),
                ('is_non_gst', models.BooleanField(default=False)),
                ('product_total', models.DecimalField(decimal_places=2, max_digits=12)),
                ('product_gst', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('bminstock', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=10)),
                ('confirmed', models.BooleanField(default=False)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='pos.order')),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='order_items', to='catalog.product')),
            ],
            options={
                'db_table': 'order_items',
                'ordering': ['position', 'id'],
            },
        ),
        migrations.CreateModel(
            name='BillCounter',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('count', models.PositiveIntegerField(default=0)),
                ('branch', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bill_counters', to='locations.branch')),
            ],
            options={
                'db_table': 'bill_counters',
                'unique_together': {('branch', 'date')},
            },
        ),
        migrations.CreateModel(
            name='KotOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('form_number', models.CharField(max_length=10, unique=True)),
                ('date', models.DateTimeField(default=django.utils.timezone.now)),
                ('order_time', models.CharField(max_length=5)),
                ('delivery_date', models.DateField()),
                ('delivery_time', models.CharField(max_length=20)),
                ('delivery_type', models.CharField(choices=[('In-Store Pickup', 'In-Store Pickup'), ('Door Delivery', 'Door Delivery')], max_length=20)),
                ('customer_name', models.CharField(max_length=200)),
                ('customer_number', models.CharField(max_length=20)),
                ('address', models.TextField()),
                ('email', models.EmailField(max_length=254)),
                ('birthday_date', models.DateField(blank=True, null=True)),
                ('cake_model', models.CharField(max_length=200)),
                ('weight', models.DecimalField(decimal_places=3, max_digits=8)),
                ('flavour', models.CharField(max_length=100)),
                ('type', models.CharField(max_length=100)),
                ('alteration', models.TextField(blank=True)),
                ('special_care', models.TextField(blank=True)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('advance', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('balance', models.DecimalField(decimal_places=2, max_digits=10)),
                ('sales_man', models.CharField(max_length=200)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('branch', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='kot_orders', to='locations.branch')),
            ],
            options={
                'db_table': 'kot_orders',
                'ordering': ['-created_at'],
            },
        ),
    ]
