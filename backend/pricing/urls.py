from django.urls import path

from .views import ComputeQuoteView

app_name = 'pricing'

urlpatterns = [
    path('quote/', ComputeQuoteView.as_view(), name='compute-quote'),
]
