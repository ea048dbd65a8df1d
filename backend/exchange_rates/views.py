from __future__ import annotations

import logging

import requests
from django.conf import settings

from rest_framework import status, views
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response

from .fx import EnvProvider, refresh_rates
from .fx_providers import load as load_fx_provider
from .models import ExchangeRate
from .serializers import ExchangeRateSerializer, FxRefreshSerializer

logger = logging.getLogger(__name__)


class FxRatesView(views.APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        rows = ExchangeRate.objects.filter(is_active=True)
        return Response(ExchangeRateSerializer(rows, many=True).data)


class FxRefreshView(views.APIView):
    permission_classes = [IsAdminUser]

    def post(self, request):
        data = dict(request.data.items()) if hasattr(request.data, "items") else {}
        if isinstance(data.get("currencies"), str):
            data["currencies"] = [c for c in data["currencies"].split(",") if c.strip()]
        ser = FxRefreshSerializer(data=data)
        if not ser.is_valid():
            return Response({"detail": ser.errors}, status=status.HTTP_400_BAD_REQUEST)

        currencies = ser.validated_data["currencies"]
        provider_name = ser.validated_data.get("provider") or getattr(settings, "FX_PROVIDER", "exchangerate_api")
        try:
            provider = load_fx_provider(provider_name)
        except ValueError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        fallback_used = False
        try:
            summary = refresh_rates(currencies, provider)
        except (requests.RequestException, ValueError) as e:
            if isinstance(provider, EnvProvider):
                return Response({"detail": str(e)}, status=status.HTTP_502_BAD_GATEWAY)
            logger.warning("%s provider failed, falling back to ENV: %s", provider_name, e)
            fallback_used = True
            try:
                summary = refresh_rates(currencies, EnvProvider())
            except ValueError as env_error:
                return Response({"detail": str(env_error)}, status=status.HTTP_502_BAD_GATEWAY)

        return Response({"results": summary, "fallback_used": fallback_used}, status=status.HTTP_200_OK)
