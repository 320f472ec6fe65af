import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('locations', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Account',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('kind', models.CharField(choices=[('bank', 'Bank'), ('cash', 'Cash')], max_length=10)),
                ('balance', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=14)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('branch', models.ForeignKey(blank=True, help_text="Set for a branch's own cash drawer", null=True, on_delete=django.db.models.deletion.PROTECT, related_name='cash_accounts', to='locations.branch')),
            ],
            options={
                'db_table': 'finance_accounts',
                'ordering': ['kind', 'name'],
            },
        ),
        migrations.CreateModel(
            name='BranchSettlement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('branch', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='settlement', to='locations.branch')),
                ('card_account', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='card_settlements', to='finance.account')),
                ('upi_account', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='upi_settlements', to='finance.account')),
            ],
            options={
                'db_table': 'finance_branch_settlements',
            },
        ),
        migrations.CreateModel(
            name='ClosingEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('system_sales', models.DecimalField(decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('manual_sales', models.DecimalField(decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('online_sales', models.DecimalField(decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('billing_total', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=14)),
                ('expenses', models.DecimalField(decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('net_result', models.DecimalField(decimal_places=2, max_digits=14)),
                ('credit_card_payment', models.DecimalField(decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('upi_payment', models.DecimalField(decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('cash_payment', models.DecimalField(decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('denom_2000', models.PositiveIntegerField(default=0)),
                ('denom_500', models.PositiveIntegerField(default=0)),
                ('denom_200', models.PositiveIntegerField(default=0)),
                ('denom_100', models.PositiveIntegerField(default=0)),
                ('denom_50', models.PositiveIntegerField(default=0)),
                ('denom_20', models.PositiveIntegerField(default=0)),
                ('denom_10', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('branch', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='closing_entries', to='locations.branch')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='closing_entries', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'closing_entries',
                'ordering': ['-date', '-created_at'],
                'verbose_name_plural': 'closing entries',
            },
        ),
        migrations.CreateModel(
            name='ExpenseDetail',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('serial_no', models.PositiveIntegerField()),
                ('reason', models.CharField(blank=True, max_length=255)),
                ('recipient', models.CharField(blank=True, max_length=255)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('closing_entry', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='expense_details', to='finance.closingentry')),
            ],
            options={
                'db_table': 'closing_entry_expenses',
                'ordering': ['serial_no', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Transaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField(default=django.utils.timezone.localdate)),
                ('type', models.CharField(choices=[('Credit - Deposit', 'Credit - Deposit'), ('Debit - Expense', 'Debit - Expense')], max_length=20)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('expense_category', models.CharField(default='N/A', max_length=100)),
                ('remarks', models.CharField(default='N/A', max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to='finance.account')),
                ('branch', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to='locations.branch')),
                ('closing_entry', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='transactions', to='finance.closingentry')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='transactions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'finance_transactions',
                'ordering': ['-date', '-id'],
                'indexes': [models.Index(fields=['account', 'date'], name='idx_fin_txn_account_date'), models.Index(fields=['branch', 'date'], name='idx_fin_txn_branch_date')],
            },
        ),
    ]
