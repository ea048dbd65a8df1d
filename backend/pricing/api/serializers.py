from rest_framework import serializers

from pricing.services.fx_service import SUPPORTED_CURRENCIES


def money_field(**kwargs):
    return serializers.DecimalField(max_digits=24, decimal_places=2, **kwargs)


class QuoteRequestSerializer(serializers.Serializer):
    spec = serializers.DictField(help_text="Quote form payload; snake_case or camelCase keys")
    currency = serializers.ChoiceField(choices=SUPPORTED_CURRENCIES, required=False)
    exchange_rate = serializers.DecimalField(max_digits=18, decimal_places=8, required=False, allow_null=True)
    country = serializers.CharField(max_length=2, required=False, allow_blank=True)
    courier = serializers.ChoiceField(choices=["dhl", "fedex", "ups"], required=False)
    service = serializers.ChoiceField(choices=["express", "standard", "economy"], required=False)
    declaration_method = serializers.CharField(max_length=32, required=False, allow_blank=True)
    coupon = money_field(required=False, min_value=0)


class QuoteSpecSerializer(serializers.Serializer):
    board_type = serializers.CharField()
    layers = serializers.IntegerField()
    thickness = serializers.DecimalField(max_digits=8, decimal_places=2)
    single_length = serializers.DecimalField(max_digits=12, decimal_places=2)
    single_width = serializers.DecimalField(max_digits=12, decimal_places=2)
    panel_mode = serializers.CharField()
    panel_row = serializers.IntegerField()
    panel_column = serializers.IntegerField()
    panel_rails = serializers.DecimalField(max_digits=12, decimal_places=2)
    quantity = serializers.IntegerField()
    surface_finish = serializers.CharField()
    enig_type = serializers.CharField()
    solder_mask = serializers.CharField()
    silkscreen = serializers.CharField()
    outer_copper_weight = serializers.DecimalField(max_digits=4, decimal_places=1)
    inner_copper_weight = serializers.DecimalField(max_digits=4, decimal_places=1, allow_null=True)
    min_trace = serializers.CharField()
    min_hole = serializers.CharField()
    hdi = serializers.CharField()
    test_method = serializers.CharField(allow_null=True)
    impedance = serializers.BooleanField()
    gold_fingers = serializers.BooleanField()
    edge_plating = serializers.BooleanField()
    ul_mark = serializers.BooleanField()
    delivery = serializers.CharField()
    urgent_reduce_days = serializers.IntegerField()
    single_area = serializers.DecimalField(max_digits=20, decimal_places=4)
    total_area = serializers.DecimalField(max_digits=20, decimal_places=4)
    defaulted_fields = serializers.ListField(child=serializers.CharField())


class SurchargeLineSerializer(serializers.Serializer):
    name = serializers.CharField()
    amount = money_field()


class PriceBreakdownSerializer(serializers.Serializer):
    base = money_field()
    surcharges = SurchargeLineSerializer(many=True)
    total = money_field()
    notes = serializers.ListField(child=serializers.CharField())
    calculation_failed = serializers.BooleanField()


class CycleSerializer(serializers.Serializer):
    days = serializers.IntegerField()
    reasons = serializers.ListField(child=serializers.CharField())
    delivery_mode = serializers.CharField()
    ship_date = serializers.DateField(allow_null=True)
    needs_review = serializers.BooleanField()
    calculation_failed = serializers.BooleanField()


class UrgentFeeSerializer(serializers.Serializer):
    supported = serializers.BooleanField()
    fee = money_field(allow_null=True)
    fee_type = serializers.CharField(allow_null=True)
    reduce_days = serializers.IntegerField()
    max_reduce_days = serializers.IntegerField()
    note = serializers.CharField(allow_blank=True)


class ShippingSerializer(serializers.Serializer):
    supported = serializers.BooleanField()
    courier = serializers.CharField()
    service = serializers.CharField()
    zone = serializers.CharField(allow_null=True)
    actual_weight_kg = serializers.DecimalField(max_digits=20, decimal_places=3)
    volumetric_weight_kg = serializers.DecimalField(max_digits=20, decimal_places=3)
    chargeable_weight_kg = serializers.DecimalField(max_digits=20, decimal_places=1)
    base_cost = money_field()
    fuel_surcharge = money_field()
    peak_surcharge = money_field()
    total = money_field()
    currency = serializers.CharField()
    note = serializers.CharField(allow_blank=True)


class CustomsSerializer(serializers.Serializer):
    duty = money_field()
    vat = money_field()
    agent_fee = money_field()
    total = money_field()
    duty_rate = serializers.DecimalField(max_digits=5, decimal_places=4)
    vat_rate = serializers.DecimalField(max_digits=5, decimal_places=4)


class AggregateSerializer(serializers.Serializer):
    cny_price = money_field()
    admin_price = money_field()
    currency = serializers.CharField()
    exchange_rate = serializers.DecimalField(max_digits=18, decimal_places=8)
    notes = serializers.ListField(child=serializers.CharField())


class QuoteResultSerializer(serializers.Serializer):
    spec = QuoteSpecSerializer()
    price = PriceBreakdownSerializer()
    cycle = CycleSerializer()
    urgent_fee = UrgentFeeSerializer(allow_null=True)
    urgent_fee_charged = money_field()
    shipping = ShippingSerializer(allow_null=True)
    customs = CustomsSerializer(allow_null=True)
    totals = AggregateSerializer(source="aggregate")
    rules_version = serializers.SerializerMethodField()

    def get_rules_version(self, obj):
        return obj.meta.get("rules_version")
