from django.urls import path

from .views import AdminOrderCancelView, AdminOrderDetailView, AdminOrderRecalculateView

app_name = 'orders'

urlpatterns = [
    path('<int:id>/admin/', AdminOrderDetailView.as_view(), name='admin-order'),
    path('<int:id>/admin/recalculate/', AdminOrderRecalculateView.as_view(), name='admin-order-recalculate'),
    path('<int:id>/admin/cancel/', AdminOrderCancelView.as_view(), name='admin-order-cancel'),
]
