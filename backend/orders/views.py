from __future__ import annotations

import logging
from typing import List, Tuple

from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone

from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from pricing.services.quote_service import URGENT_SURCHARGE_NAME, recalculate_quote

from .models import CANCELLABLE_STATUSES, AdminOrder, Order
from .serializers import AdminOrderSerializer

logger = logging.getLogger(__name__)


def apply_quote(admin_order: AdminOrder) -> Tuple[bool, List[str]]:
    """
    Re-price ``admin_order`` from its order's spec.

    Returns whether the price could be calculated, and the calculation notes.
    Shipping, duty, coupon and manual surcharges are left as the admin set them.
    """
    order = admin_order.order
    reference = timezone.localtime(order.created_at) if order.created_at else None
    result = recalculate_quote(
        order.spec,
        reference=reference,
        currency=admin_order.currency,
        exchange_rate=admin_order.exchange_rate,
    )
    if result.price.calculation_failed:
        return False, list(result.price.notes)

    admin_order.pcb_price = result.price.total
    admin_order.production_days = result.cycle.days
    admin_order.delivery_date = result.cycle.ship_date
    surcharges = [s for s in (admin_order.surcharges or []) if s.get("name") != URGENT_SURCHARGE_NAME]
    if result.urgent_fee is not None:
        surcharges.append({"name": URGENT_SURCHARGE_NAME, "amount": str(result.urgent_fee_charged)})
    admin_order.surcharges = surcharges
    return True, list(result.price.notes) + list(result.cycle.reasons)


def get_or_create_admin_order(order: Order) -> AdminOrder:
    admin_order = AdminOrder.objects.filter(order=order).first()
    if admin_order:
        return admin_order
    admin_order = AdminOrder(order=order, status=order.status)
    apply_quote(admin_order)
    admin_order.save()
    logger.info("Created admin record for order %s", order.pk)
    return admin_order


class AdminOrderDetailView(APIView):
    permission_classes = [IsAdminUser]

    def get(self, request, id):
        order = get_object_or_404(Order, pk=id)
        with transaction.atomic():
            admin_order = get_or_create_admin_order(order)
        return Response(AdminOrderSerializer(admin_order).data, status=status.HTTP_200_OK)

    def patch(self, request, id):
        order = get_object_or_404(Order, pk=id)
        with transaction.atomic():
            admin_order = get_or_create_admin_order(order)
            if admin_order.is_closed:
                return Response(
                    {"detail": f"Order is {admin_order.status} and can no longer be edited"},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            ser = AdminOrderSerializer(admin_order, data=request.data, partial=True)
            ser.is_valid(raise_exception=True)
            admin_order = ser.save()
            if "status" in ser.validated_data and order.status != admin_order.status:
                order.status = admin_order.status
                order.save(update_fields=["status", "updated_at"])
        return Response(AdminOrderSerializer(admin_order).data, status=status.HTTP_200_OK)


class AdminOrderRecalculateView(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request, id):
        order = get_object_or_404(Order, pk=id)
        with transaction.atomic():
            admin_order = get_or_create_admin_order(order)
            if admin_order.is_closed:
                return Response(
                    {"detail": f"Order is {admin_order.status} and can no longer be recalculated"},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            applied, notes = apply_quote(admin_order)
            if not applied:
                return Response({"detail": notes}, status=status.HTTP_400_BAD_REQUEST)
            admin_order.save()
        data = AdminOrderSerializer(admin_order).data
        data["notes"] = notes
        return Response(data, status=status.HTTP_200_OK)


class AdminOrderCancelView(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request, id):
        order = get_object_or_404(Order, pk=id)
        with transaction.atomic():
            admin_order = get_or_create_admin_order(order)
            if admin_order.status not in CANCELLABLE_STATUSES:
                return Response(
                    {"detail": f"Cannot cancel an order that is {admin_order.status}"},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            admin_order.status = "cancelled"
            reason = (request.data.get("reason") or "").strip()
            if reason:
                admin_order.admin_note = "\n".join(filter(None, [admin_order.admin_note, f"Cancelled: {reason}"]))
            admin_order.save()
            order.status = "cancelled"
            order.save(update_fields=["status", "updated_at"])
        return Response(AdminOrderSerializer(admin_order).data, status=status.HTTP_200_OK)
