from django.contrib import admin

from .models import ExchangeRate


@admin.register(ExchangeRate)
class ExchangeRateAdmin(admin.ModelAdmin):
    list_display = ("base_currency", "target_currency", "rate", "source", "is_active", "last_updated")
    list_filter = ("source", "is_active")
    search_fields = ("base_currency", "target_currency")
