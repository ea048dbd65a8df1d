from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/pricing/', include('pricing.urls')),
    path('api/orders/', include('orders.urls')),
    path('api/fx/', include('exchange_rates.urls')),
]
