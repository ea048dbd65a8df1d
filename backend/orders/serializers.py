from decimal import Decimal

from rest_framework import serializers

from exchange_rates.fx import get_cny_rate
from pricing.services.fx_service import BASE_CURRENCY, DEFAULT_EXCHANGE_RATE, SUPPORTED_CURRENCIES
from pricing.services.pricing_rules import default_rate_for

from .models import AdminOrder

RATE_PLACES = Decimal("0.00000001")


class SurchargeSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, allow_blank=True)
    amount = serializers.DecimalField(max_digits=18, decimal_places=2)


class AdminOrderSerializer(serializers.ModelSerializer):
    surcharges = SurchargeSerializer(many=True, required=False)
    currency = serializers.ChoiceField(choices=SUPPORTED_CURRENCIES, required=False)

    class Meta:
        model = AdminOrder
        fields = [
            "id", "order",
            "pcb_price", "ship_price", "custom_duty", "coupon", "surcharges",
            "currency", "exchange_rate",
            "production_days", "delivery_date",
            "status", "payment_status", "admin_note",
            "cny_price", "admin_price",
            "created_at", "updated_at",
        ]
        read_only_fields = ("order", "cny_price", "admin_price", "created_at", "updated_at")

    def validate_status(self, value):
        if value == "cancelled":
            raise serializers.ValidationError("Use the cancel endpoint to cancel an order.")
        return value

    def validate_surcharges(self, value):
        # Stored as JSON; keep amounts as strings so Decimal precision survives
        return [{"name": s["name"], "amount": str(s["amount"])} for s in value]

    def validate(self, attrs):
        # A currency switch without an explicit rate picks up the current rate for the new currency.
        currency = attrs.get("currency")
        if (
            self.instance is not None
            and currency
            and currency != self.instance.currency
            and currency != BASE_CURRENCY
            and attrs.get("exchange_rate") is None
        ):
            fallback = default_rate_for(currency) or DEFAULT_EXCHANGE_RATE
            attrs["exchange_rate"] = get_cny_rate(currency, fallback).quantize(RATE_PLACES)
        return attrs

    def update(self, instance, validated_data):
        # surcharges live in a JSONField, not a related model
        if "surcharges" in validated_data:
            instance.surcharges = validated_data.pop("surcharges")
        return super().update(instance, validated_data)

