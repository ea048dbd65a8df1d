import logging

from django.utils import timezone

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from exchange_rates.fx import stored_cny_rates

from .api.serializers import QuoteRequestSerializer, QuoteResultSerializer
from .services.quote_service import recalculate_quote

logger = logging.getLogger(__name__)


class ComputeQuoteView(APIView):
    """Price a board specification without creating an order."""

    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        ser = QuoteRequestSerializer(data=request.data)
        if not ser.is_valid():
            return Response({"detail": ser.errors}, status=status.HTTP_400_BAD_REQUEST)
        data = ser.validated_data

        result = recalculate_quote(
            data["spec"],
            reference=timezone.localtime(),
            currency=data.get("currency"),
            exchange_rate=data.get("exchange_rate"),
            country=data.get("country") or None,
            courier=data.get("courier"),
            service=data.get("service"),
            declaration_method=data.get("declaration_method"),
            coupon=data.get("coupon", 0),
            rates=stored_cny_rates(),
        )
        if result.price.calculation_failed:
            logger.info("Quote calculation failed: %s", "; ".join(result.price.notes))
        return Response(QuoteResultSerializer(result).data, status=status.HTTP_200_OK)
