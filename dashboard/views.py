import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema

from activity.serializers import ActivityLogSerializer
from authentication.permissions import Permissions, require_permission, accessible_screens, user_role
from orders.serializers import OrderListSerializer
from .exports import sales_report_excel_response, sales_report_pdf_response
from .reports import (
    get_today_stats, get_recent_orders, get_recent_activities, get_sales_history,
    parse_report_range, build_sales_report
)

logger = logging.getLogger(__name__)

DATE_PARAMETERS = [
    openapi.Parameter('start_date', openapi.IN_QUERY, description="YYYY-MM-DD, defaults to 30 days ago", type=openapi.TYPE_STRING),
    openapi.Parameter('end_date', openapi.IN_QUERY, description="YYYY-MM-DD, defaults to today", type=openapi.TYPE_STRING),
]


@swagger_auto_schema(
    method='get',
    operation_description="Today's numbers, recent orders and recent activity for the staff dashboard",
    responses={200: openapi.Schema(type=openapi.TYPE_OBJECT)}
)
@api_view(['GET'])
@permission_classes([require_permission(Permissions.VIEW_DASHBOARD)])
def dashboard(request):
    role = user_role(request.user)
    data = get_today_stats()
    data.update({
        'recent_orders': OrderListSerializer(get_recent_orders(), many=True).data,
        'recent_activities': ActivityLogSerializer(get_recent_activities(), many=True).data,
        'role': role,
        'screens': accessible_screens(role),
    })
    return Response(data)


@swagger_auto_schema(
    method='get',
    operation_description="Latest completed sales with their totals",
    manual_parameters=[
        openapi.Parameter('search', openapi.IN_QUERY, description="Order number or customer name", type=openapi.TYPE_STRING),
    ]
)
@api_view(['GET'])
@permission_classes([require_permission(Permissions.VIEW_SALES)])
def sales_history(request):
    orders, totals = get_sales_history(search=request.query_params.get('search'))
    return Response({
        'orders': OrderListSerializer(orders, many=True).data,
        'totals': totals,
    })


@swagger_auto_schema(
    method='get',
    operation_description="Sales summary, top items and daily breakdown for a date range",
    manual_parameters=DATE_PARAMETERS
)
@api_view(['GET'])
@permission_classes([require_permission(Permissions.VIEW_REPORTS)])
def sales_report(request):
    start_date, end_date = parse_report_range(
        request.query_params.get('start_date'), request.query_params.get('end_date')
    )
    return Response(build_sales_report(start_date, end_date))


@swagger_auto_schema(
    method='get',
    operation_description="Download the sales report as an Excel workbook or a PDF",
    manual_parameters=DATE_PARAMETERS + [
        openapi.Parameter('format', openapi.IN_QUERY, description="excel or pdf", type=openapi.TYPE_STRING, enum=['excel', 'pdf']),
    ]
)
@api_view(['GET'])
@permission_classes([require_permission(Permissions.EXPORT_REPORTS)])
def export_sales_report(request):
    format_type = request.query_params.get('format', 'excel')
    if format_type not in ('excel', 'pdf'):
        raise ValidationError({'format': "Choose 'excel' or 'pdf'."})

    start_date, end_date = parse_report_range(
        request.query_params.get('start_date'), request.query_params.get('end_date')
    )
    report = build_sales_report(start_date, end_date)
    logger.info(f"Sales report {start_date} to {end_date} exported as {format_type} by {request.user}")

    if format_type == 'excel':
        return sales_report_excel_response(report)
    return sales_report_pdf_response(report)
