import logging

from rest_framework import status, generics, filters
from rest_framework.decorators import api_view, permission_classes, renderer_classes
from rest_framework.response import Response
from rest_framework.renderers import BaseRenderer, JSONRenderer
from rest_framework.permissions import AllowAny
from django.db.models import Count
from django.http import StreamingHttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from authentication.permissions import HasPermission, Permissions, require_permission
from .lifecycle import TRANSITIONS, apply_action
from .models import Order, OrderStatus, ACTIVE_STATUSES
from .realtime import order_feed
from .serializers import (
    POSCheckoutSerializer, OnlineCheckoutSerializer, KioskCheckoutSerializer,
    OrderListSerializer, OrderReadSerializer, OrderActionSerializer, OrderActionRequestSerializer
)

logger = logging.getLogger(__name__)


def order_queryset():
    return Order.objects.select_related('cashier__profile').prefetch_related(
        'items__menu_item', 'actions__action_by__profile', 'actions__authorized_by__profile', 'discounts'
    )


class CheckoutView(generics.CreateAPIView):
    """Base checkout view; responds with the full order"""

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = serializer.save()
        logger.info(f"{order.source} checkout created order {order.order_number} ({order.total_amount})")
        order = order_queryset().get(pk=order.pk)
        return Response(OrderReadSerializer(order).data, status=status.HTTP_201_CREATED)


class POSCheckoutView(CheckoutView):
    """Counter sale by a cashier; completed and paid immediately"""
    serializer_class = POSCheckoutSerializer
    permission_classes = [require_permission(Permissions.MANAGE_ORDERS)]

    @swagger_auto_schema(
        operation_description="Ring up a sale at the counter",
        request_body=POSCheckoutSerializer,
        responses={201: OrderReadSerializer}
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


class OnlineCheckoutView(CheckoutView):
    """Online order placed by a customer, paid on pickup"""
    serializer_class = OnlineCheckoutSerializer
    permission_classes = [AllowAny]

    @swagger_auto_schema(
        operation_description="Place an online order for pickup",
        request_body=OnlineCheckoutSerializer,
        responses={201: OrderReadSerializer}
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


class KioskCheckoutView(CheckoutView):
    """Order placed at the in-store kiosk"""
    serializer_class = KioskCheckoutSerializer
    permission_classes = [AllowAny]

    @swagger_auto_schema(
        operation_description="Place a kiosk order",
        request_body=KioskCheckoutSerializer,
        responses={201: OrderReadSerializer}
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


class OrderListView(generics.ListAPIView):
    """List orders, newest first"""
    serializer_class = OrderListSerializer
    permission_classes = [require_permission(Permissions.MANAGE_ORDERS)]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['status', 'order_type', 'source', 'payment_method']
    search_fields = ['order_number', 'customer_name']
    ordering_fields = ['created_at', 'total_amount', 'status']
    ordering = ['-created_at', '-id']

    def get_queryset(self):
        queryset = Order.objects.select_related('cashier__profile').prefetch_related('items')

        date_filter = self.request.query_params.get('date')
        if date_filter:
            queryset = queryset.filter(created_at__date=date_filter)

        if self.request.query_params.get('active') == 'true':
            queryset = queryset.filter(status__in=ACTIVE_STATUSES)

        return queryset

    @swagger_auto_schema(
        manual_parameters=[
            openapi.Parameter('status', openapi.IN_QUERY, description="Filter by order status", type=openapi.TYPE_STRING),
            openapi.Parameter('order_type', openapi.IN_QUERY, description="takeout or dine-in", type=openapi.TYPE_STRING),
            openapi.Parameter('source', openapi.IN_QUERY, description="pos, online or kiosk", type=openapi.TYPE_STRING),
            openapi.Parameter('date', openapi.IN_QUERY, description="Filter by date (YYYY-MM-DD)", type=openapi.TYPE_STRING),
            openapi.Parameter('active', openapi.IN_QUERY, description="Only orders still in progress", type=openapi.TYPE_BOOLEAN),
            openapi.Parameter('search', openapi.IN_QUERY, description="Order number or customer name", type=openapi.TYPE_STRING),
        ]
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class OrderDetailView(generics.RetrieveDestroyAPIView):
    """
    get: Order with its items, actions and discounts
    delete: Remove an order and its items (admins only)
    """
    serializer_class = OrderReadSerializer

    def get_queryset(self):
        return order_queryset()

    def get_permissions(self):
        if self.request.method == 'DELETE':
            return [HasPermission(Permissions.DELETE_ORDERS)]
        return [HasPermission(Permissions.MANAGE_ORDERS)]

    def perform_destroy(self, instance):
        instance._acting_user = self.request.user
        logger.info(f"Order {instance.order_number} deleted by {self.request.user}")
        instance.delete()


@swagger_auto_schema(
    method='post',
    operation_description="Apply a lifecycle action (approve, preparing, ready, complete, cancel, refund, discount, void)",
    request_body=OrderActionRequestSerializer,
    responses={200: OrderReadSerializer, 403: 'Void needs admin authorization', 409: 'Action not allowed in this status'}
)
@api_view(['POST'])
@permission_classes([require_permission(Permissions.MANAGE_ORDERS)])
def order_action(request, pk):
    """Move an order through its lifecycle"""
    order = get_object_or_404(Order, pk=pk)
    serializer = OrderActionRequestSerializer(data=request.data, context={'request': request})
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    order = apply_action(
        order,
        data['action'],
        request.user,
        amount=data.get('amount'),
        reason=data.get('reason', ''),
        notes=data.get('notes', ''),
        discount_type=data.get('discount_type'),
        supervisor=data.get('supervisor'),
    )
    return Response(OrderReadSerializer(order_queryset().get(pk=order.pk)).data)


@swagger_auto_schema(
    method='get',
    operation_description="Actions applied to an order, oldest first",
    responses={200: OrderActionSerializer(many=True)}
)
@api_view(['GET'])
@permission_classes([require_permission(Permissions.MANAGE_ORDERS)])
def order_action_history(request, pk):
    order = get_object_or_404(Order, pk=pk)
    actions = order.actions.select_related('action_by__profile', 'authorized_by__profile').order_by('created_at', 'id')
    return Response(OrderActionSerializer(actions, many=True).data)


@swagger_auto_schema(
    method='get',
    operation_description="Orders still being worked on, oldest first",
    responses={200: OrderReadSerializer(many=True)}
)
@api_view(['GET'])
@permission_classes([require_permission(Permissions.MANAGE_ORDERS)])
def kitchen_display(request):
    """Get orders for the kitchen board"""
    orders = order_queryset().filter(status__in=ACTIVE_STATUSES).order_by('created_at', 'id')
    return Response(OrderReadSerializer(orders, many=True).data)


@swagger_auto_schema(
    method='get',
    operation_description="Today's order counts per status",
    responses={200: openapi.Schema(type=openapi.TYPE_OBJECT)}
)
@api_view(['GET'])
@permission_classes([require_permission(Permissions.MANAGE_ORDERS)])
def order_statistics(request):
    """Get order statistics for the order screen"""
    today = timezone.localdate()
    rows = (
        Order.objects.filter(created_at__date=today)
        .order_by()
        .values('status')
        .annotate(total=Count('id'))
    )
    counts = {row['status']: row['total'] for row in rows}
    stats = {choice: counts.get(choice, 0) for choice in OrderStatus.values}
    stats['total'] = sum(counts.values())
    stats['active'] = sum(counts.get(s, 0) for s in ACTIVE_STATUSES)
    stats['date'] = today
    return Response(stats)


@swagger_auto_schema(
    method='get',
    operation_description="Which actions are allowed in each status and where they lead",
    responses={200: openapi.Schema(type=openapi.TYPE_OBJECT)}
)
@api_view(['GET'])
@permission_classes([require_permission(Permissions.MANAGE_ORDERS)])
def order_transitions(request):
    table = {
        status_value.value: {action.value: target.value for action, target in actions.items()}
        for status_value, actions in TRANSITIONS.items()
    }
    return Response(table)


class EventStreamRenderer(BaseRenderer):
    """
    Lets EventSource clients (Accept: text/event-stream) through content
    negotiation. Error responses are sent as a single event.
    """
    media_type = 'text/event-stream'
    format = 'event-stream'
    charset = 'utf-8'

    def render(self, data, accepted_media_type=None, renderer_context=None):
        if data is None:
            return b''
        payload = JSONRenderer().render(data).decode()
        return f"data: {payload}\n\n".encode(self.charset)


def event_stream():
    for message in order_feed.listen():
        yield f"data: {message}\n\n"


@api_view(['GET'])
@renderer_classes([JSONRenderer, EventStreamRenderer])
@permission_classes([require_permission(Permissions.MANAGE_ORDERS)])
def order_feed_stream(request):
    """Server-sent events stream of newly created orders"""
    response = StreamingHttpResponse(event_stream(), content_type='text/event-stream')
    response['Cache-Control'] = 'no-cache'
    response['X-Accel-Buffering'] = 'no'
    return response
