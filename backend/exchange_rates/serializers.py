from rest_framework import serializers

from .models import ExchangeRate


class ExchangeRateSerializer(serializers.ModelSerializer):
    class Meta:
        model = ExchangeRate
        fields = ["id", "base_currency", "target_currency", "rate", "source", "is_active", "last_updated"]
        read_only_fields = ("last_updated",)


class FxRefreshSerializer(serializers.Serializer):
    currencies = serializers.ListField(child=serializers.CharField(max_length=3), allow_empty=False)
    provider = serializers.CharField(required=False, allow_blank=True)

    def validate_currencies(self, value):
        out = []
        for code in value:
            code = code.strip().upper()
            if len(code) != 3 or not code.isalpha():
                raise serializers.ValidationError(f"Invalid currency '{code}'")
            out.append(code)
        return out
