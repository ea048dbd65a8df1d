from django.contrib import admin

from .models import AdminOrder, Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "shipping_country", "status", "created_at")
    list_filter = ("status", "created_at")
    date_hierarchy = "created_at"


@admin.register(AdminOrder)
class AdminOrderAdmin(admin.ModelAdmin):
    list_display = ("order", "status", "payment_status", "currency", "cny_price", "admin_price", "production_days", "delivery_date")
    list_filter = ("status", "payment_status", "currency")
    readonly_fields = ("cny_price", "admin_price", "created_at", "updated_at")

    def has_delete_permission(self, request, obj=None):
        return False
