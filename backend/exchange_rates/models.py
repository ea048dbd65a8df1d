from django.db import models


class ExchangeRate(models.Model):
    SOURCE_CHOICES = [
        ('manual', 'Manual'),
        ('api_exchangerate', 'exchangerate-api.com'),
        ('env', 'Environment'),
    ]

    # 1 base_currency = rate target_currency, e.g. USD -> CNY 7.2
    base_currency = models.CharField(max_length=3)
    target_currency = models.CharField(max_length=3)
    rate = models.DecimalField(max_digits=18, decimal_places=8)
    source = models.CharField(max_length=32, choices=SOURCE_CHOICES, default='manual')
    is_active = models.BooleanField(default=True)
    last_updated = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'exchange_rates'
        unique_together = (('base_currency', 'target_currency'),)
        ordering = ['base_currency', 'target_currency']

    def __str__(self):
        return f"{self.base_currency}->{self.target_currency} {self.rate}"
