# Generated manually for the initial restaurant schema

import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Restaurant',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=300, verbose_name='Name')),
                ('email', models.EmailField(blank=True, default='', max_length=254, verbose_name='Email')),
                ('phone', models.CharField(blank=True, default='', max_length=32, verbose_name='Phone')),
                ('address', models.TextField(blank=True, default='', verbose_name='Address')),
                ('tax_rate', models.DecimalField(blank=True, decimal_places=4, help_text='Fraction, e.g. 0.0800. Empty means the platform default.', max_digits=6, null=True, verbose_name='Tax rate')),
                ('delivery_fee', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, verbose_name='Delivery fee')),
                ('minimum_order', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, verbose_name='Minimum order')),
                ('is_online', models.BooleanField(default=False, verbose_name='Staff online')),
                ('ai_enabled', models.BooleanField(blank=True, default=None, help_text='Only an explicit "No" disables AI call handling.', null=True, verbose_name='AI enabled')),
                ('busy_mode_enabled', models.BooleanField(default=False, verbose_name='Busy mode (manual)')),
                ('busy_hours', models.JSONField(blank=True, default=list, help_text='List of {"day", "start", "end", "enabled"} entries, times as HH:MM.', verbose_name='Busy hours')),
                ('voice_line_id', models.CharField(blank=True, max_length=100, null=True, unique=True, verbose_name='Voice line ID')),
                ('voice_phone_number', models.CharField(blank=True, max_length=32, null=True, unique=True, verbose_name='Voice phone number')),
                ('staff_phone', models.CharField(blank=True, default='', max_length=32, verbose_name='Staff forwarding number')),
                ('is_system', models.BooleanField(default=False, verbose_name='Platform tenant')),
                ('config_json', models.JSONField(blank=True, default=dict, help_text='Per-tenant overrides (sms, payments, printing).', verbose_name='Integration settings')),
                ('last_login_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Restaurant',
                'verbose_name_plural': 'Restaurants',
                'db_table': 'restaurant',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='StaffAccount',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('password', models.CharField(max_length=256)),
                ('role', models.CharField(choices=[('super_admin', 'Platform operator'), ('restaurant_owner', 'Restaurant owner')], default='restaurant_owner', max_length=32)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('restaurant', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='staff', to='restaurant.restaurant')),
            ],
            options={
                'verbose_name': 'Staff account',
                'verbose_name_plural': 'Staff accounts',
                'db_table': 'staff_account',
            },
        ),
        migrations.CreateModel(
            name='AccessToken',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(db_index=True, max_length=64, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tokens', to='restaurant.staffaccount')),
            ],
            options={
                'db_table': 'access_token',
            },
        ),
        migrations.CreateModel(
            name='MenuCategory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('display_order', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('restaurant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='categories', to='restaurant.restaurant')),
            ],
            options={
                'verbose_name': 'Menu category',
                'verbose_name_plural': 'Menu categories',
                'db_table': 'menu_category',
                'ordering': ['display_order', 'id'],
            },
        ),
        migrations.CreateModel(
            name='MenuItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=300)),
                ('description', models.TextField(blank=True, default='')),
                ('price', models.DecimalField(decimal_places=2, max_digits=10)),
                ('available', models.BooleanField(default=True)),
                ('customizations', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('category', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='items', to='restaurant.menucategory')),
                ('restaurant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='menu_items', to='restaurant.restaurant')),
            ],
            options={
                'verbose_name': 'Menu item',
                'verbose_name_plural': 'Menu items',
                'db_table': 'menu_item',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['restaurant', 'available'], name='menu_item_restaur_avail_idx')],
            },
        ),
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('order_number', models.CharField(db_index=True, max_length=64)),
                ('customer_name', models.CharField(max_length=300)),
                ('customer_phone', models.CharField(blank=True, db_index=True, default='', max_length=32)),
                ('delivery_address', models.TextField(blank=True, default='')),
                ('order_type', models.CharField(choices=[('delivery', 'Delivery'), ('pickup', 'Pickup')], max_length=16)),
                ('subtotal', models.DecimalField(decimal_places=6, max_digits=16)),
                ('tax', models.DecimalField(decimal_places=6, max_digits=16)),
                ('delivery_fee', models.DecimalField(decimal_places=6, max_digits=16)),
                ('total', models.DecimalField(decimal_places=6, max_digits=16)),
                ('payment_method', models.CharField(choices=[('card', 'Card'), ('cash', 'Cash')], default='cash', max_length=16)),
                ('payment_status', models.CharField(choices=[('pending', 'Pending'), ('paid', 'Paid')], default='pending', max_length=16)),
                ('payment_link_id', models.CharField(blank=True, db_index=True, default='', max_length=128)),
                ('payment_url', models.URLField(blank=True, default='', max_length=500)),
                ('status', models.CharField(choices=[('pending', 'Awaiting action'), ('confirmed', 'Confirmed'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='pending', max_length=16)),
                ('source', models.CharField(choices=[('phone', 'Phone'), ('dashboard', 'Dashboard')], max_length=16)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('restaurant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='orders', to='restaurant.restaurant')),
            ],
            options={
                'verbose_name': 'Order',
                'verbose_name_plural': 'Orders',
                'db_table': 'order',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['restaurant', '-created_at'], name='order_restaur_created_idx'),
                    models.Index(fields=['restaurant', 'status'], name='order_restaur_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OrderLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=300)),
                ('unit_price', models.DecimalField(decimal_places=2, max_digits=10)),
                ('quantity', models.PositiveIntegerField()),
                ('notes', models.CharField(blank=True, default='', max_length=500)),
                ('menu_item', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='restaurant.menuitem')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='restaurant.order')),
            ],
            options={
                'db_table': 'order_line',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='PrintJob',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('trigger', models.CharField(default='completed', max_length=32)),
                ('external_id', models.CharField(blank=True, default='', max_length=128)),
                ('status', models.CharField(choices=[('queued', 'Queued'), ('sent', 'Sent'), ('failed', 'Failed')], default='queued', max_length=16)),
                ('error', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='print_jobs', to='restaurant.order')),
            ],
            options={
                'db_table': 'print_job',
                'ordering': ['-created_at'],
                'constraints': [models.UniqueConstraint(fields=('order', 'trigger'), name='print_job_once_per_trigger')],
            },
        ),
        migrations.CreateModel(
            name='NotificationLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('destination', models.CharField(max_length=32)),
                ('message', models.TextField()),
                ('receipt_id', models.CharField(blank=True, default='', max_length=128)),
                ('status', models.CharField(choices=[('sent', 'Sent'), ('failed', 'Failed')], max_length=16)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to='restaurant.order')),
            ],
            options={
                'db_table': 'notification_log',
                'ordering': ['-created_at'],
            },
        ),
    ]
