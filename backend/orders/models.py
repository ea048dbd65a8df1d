from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from pricing.dataclasses import AdminOrderEdit
from pricing.services.fx_service import BASE_CURRENCY
from pricing.services.order_aggregate import build_order_aggregate

STATUS_CHOICES = [
    ('created', 'Created'),
    ('reviewed', 'Reviewed'),
    ('paid', 'Paid'),
    ('in_production', 'In production'),
    ('shipped', 'Shipped'),
    ('completed', 'Completed'),
    ('cancelled', 'Cancelled'),
]
CLOSED_STATUSES = ('completed', 'cancelled')
CANCELLABLE_STATUSES = ('created', 'reviewed', 'paid')

PAYMENT_STATUS_CHOICES = [('unpaid', 'Unpaid'), ('paid', 'Paid'), ('refunded', 'Refunded')]


class Order(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL)
    spec = models.JSONField(default=dict, help_text="Quote form payload as submitted by the customer.")
    shipping_country = models.CharField(max_length=2, blank=True, default='')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Order #{self.pk} ({self.status})"


class AdminOrder(models.Model):
    order = models.OneToOneField(Order, on_delete=models.PROTECT, related_name='admin_order')
    pcb_price = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal('0'))
    ship_price = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal('0'))
    custom_duty = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal('0'))
    coupon = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal('0'))
    surcharges = models.JSONField(default=list, blank=True)
    currency = models.CharField(max_length=3, default='USD')
    exchange_rate = models.DecimalField(max_digits=18, decimal_places=8, default=Decimal('7.2'))
    production_days = models.PositiveIntegerField(null=True, blank=True)
    delivery_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='created')
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='unpaid')
    admin_note = models.TextField(blank=True, default='')
    # Derived; recomputed on every save
    cny_price = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal('0'))
    admin_price = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal('0'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"AdminOrder for order #{self.order_id}"

    @property
    def is_closed(self) -> bool:
        return self.status in CLOSED_STATUSES

    def as_edit(self) -> AdminOrderEdit:
        return AdminOrderEdit(
            pcb_price=self.pcb_price,
            ship_price=self.ship_price,
            custom_duty=self.custom_duty,
            coupon=self.coupon,
            surcharges=self.surcharges,
            currency=self.currency,
            exchange_rate=self.exchange_rate,
            production_days=self.production_days,
            delivery_date=self.delivery_date,
            status=self.status,
            payment_status=self.payment_status,
            admin_note=self.admin_note,
        )

    def recompute_totals(self):
        aggregate = build_order_aggregate(self.as_edit())
        self.currency = aggregate.currency
        # CNY converts at 1 without touching the stored rate
        if aggregate.currency != BASE_CURRENCY:
            self.exchange_rate = aggregate.exchange_rate
        self.cny_price = aggregate.cny_price
        self.admin_price = aggregate.admin_price
        return aggregate

    def save(self, *args, **kwargs):
        self.recompute_totals()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Admin orders cannot be deleted; cancel the order instead.")
