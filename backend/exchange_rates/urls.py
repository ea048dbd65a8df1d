from django.urls import path

from .views import FxRatesView, FxRefreshView

app_name = 'exchange_rates'

urlpatterns = [
    path('rates/', FxRatesView.as_view(), name='fx-rates'),
    path('refresh/', FxRefreshView.as_view(), name='fx-refresh'),
]
