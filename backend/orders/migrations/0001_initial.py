from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


STATUS_CHOICES = [('created', 'Created'), ('reviewed', 'Reviewed'), ('paid', 'Paid'), ('in_production', 'In production'), ('shipped', 'Shipped'), ('completed', 'Completed'), ('cancelled', 'Cancelled')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('spec', models.JSONField(default=dict, help_text='Quote form payload as submitted by the customer.')),
                ('shipping_country', models.CharField(blank=True, default='', max_length=2)),
                ('status', models.CharField(choices=STATUS_CHOICES, default='created', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='AdminOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('pcb_price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=18)),
                ('ship_price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=18)),
                ('custom_duty', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=18)),
                ('coupon', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=18)),
                ('surcharges', models.JSONField(blank=True, default=list)),
                ('currency', models.CharField(default='USD', max_length=3)),
                ('exchange_rate', models.DecimalField(decimal_places=8, default=Decimal('7.2'), max_digits=18)),
                ('production_days', models.PositiveIntegerField(blank=True, null=True)),
                ('delivery_date', models.DateField(blank=True, null=True)),
                ('status', models.CharField(choices=STATUS_CHOICES, default='created', max_length=20)),
                ('payment_status', models.CharField(choices=[('unpaid', 'Unpaid'), ('paid', 'Paid'), ('refunded', 'Refunded')], default='unpaid', max_length=20)),
                ('admin_note', models.TextField(blank=True, default='')),
                ('cny_price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=18)),
                ('admin_price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=18)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='admin_order', to='orders.order')),
            ],
        ),
    ]
