import django.db.models.deletion
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('parties', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Album',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, unique=True)),
                ('enabled', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'albums',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Department',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'departments',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Category',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, unique=True)),
                ('image', models.ImageField(blank=True, null=True, upload_to='categories/')),
                ('is_pastry_product', models.BooleanField(default=False)),
                ('is_cake', models.BooleanField(default=False)),
                ('is_billing', models.BooleanField(default=False, help_text='Shown on the billing screen')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('departments', models.ManyToManyField(blank=True, related_name='categories', to='catalog.department')),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='children', to='catalog.category')),
            ],
            options={
                'db_table': 'categories',
                'ordering': ['name'],
                'verbose_name_plural': 'categories',
            },
        ),
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_code', models.CharField(editable=False, help_text='Zero-padded sequence, e.g. 00001', max_length=5, unique=True)),
                ('upc', models.CharField(editable=False, help_text='EAN-13 derived from the product code', max_length=13, unique=True)),
                ('name', models.CharField(max_length=255, unique=True)),
                ('is_veg', models.BooleanField(default=True)),
                ('is_pastry', models.BooleanField(default=False)),
                ('product_type', models.CharField(choices=[('cake', 'Cake'), ('non-cake', 'Non-cake')], default='non-cake', max_length=10)),
                ('description', models.TextField(blank=True)),
                ('food_notes', models.TextField(blank=True)),
                ('ingredients', models.TextField(blank=True)),
                ('available', models.BooleanField(default=True)),
                ('images', models.JSONField(blank=True, default=list, help_text='Stored image paths relative to MEDIA_ROOT')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('album', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='products', to='catalog.album')),
                ('category', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='products', to='catalog.category')),
                ('company', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='products', to='parties.company')),
                ('dealers', models.ManyToManyField(related_name='products', to='parties.dealer')),
            ],
            options={
                'db_table': 'products',
                'ordering': ['product_code'],
            },
        ),
        migrations.CreateModel(
            name='PriceDetail',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('position', models.PositiveIntegerField(default=0)),
                ('price', models.DecimalField(decimal_places=2, max_digits=10)),
                ('rate', models.DecimalField(decimal_places=2, max_digits=10)),
                ('offer_percent', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=5)),
                ('quantity', models.DecimalField(decimal_places=3, default=Decimal('1'), max_digits=10)),
                ('unit', models.CharField(choices=[('kg', 'Kilogram'), ('g', 'Gram'), ('pcs', 'Pieces')], max_length=5)),
                ('cake_type', models.CharField(blank=True, choices=[('freshCream', 'Fresh Cream'), ('butterCream', 'Butter Cream')], max_length=20, null=True)),
                ('gst', models.PositiveSmallIntegerField(choices=[(0, '0%'), (5, '5%'), (12, '12%'), (18, '18%'), (22, '22%')], default=0)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='price_details', to='catalog.product')),
            ],
            options={
                'db_table': 'product_price_details',
                'ordering': ['product', 'position'],
            },
        ),
    ]
