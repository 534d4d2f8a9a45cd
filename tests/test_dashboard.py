import io
from datetime import timedelta
from decimal import Decimal

import openpyxl
import pytest
from django.utils import timezone

from brewpos.utils import format_currency, to_money
from dashboard.reports import parse_report_range
from inventory.models import LowStockAlert


@pytest.fixture
def sales(api_client, client_for, cashier_user, cart):
    """Two completed POS sales (275.00 each) and one pending kiosk order"""
    cashier = client_for(cashier_user)
    for name in ["Ana", "Ben"]:
        cashier.post('/orders/checkout/pos/', {'items': cart, 'customer_name': name}, format='json')
    api_client.post('/orders/checkout/kiosk/', {'items': cart, 'customer_name': 'Kim'}, format='json')


def test_format_currency():
    assert format_currency(Decimal("1234.5")) == "₱1,234.50"
    assert format_currency(0) == "₱0.00"
    assert format_currency(None) == "₱0.00"
    assert format_currency(Decimal("-5")) == "-₱5.00"


def test_to_money_rounds_half_up():
    assert to_money("2.345") == Decimal("2.35")
    assert to_money(Decimal("2.344")) == Decimal("2.34")


def test_report_range_defaults_to_last_30_days():
    start, end = parse_report_range()
    assert end == timezone.localdate()
    assert end - start == timedelta(days=30)


@pytest.mark.django_db
def test_dashboard_stats(client_for, cashier_user, sales, milk):
    milk.set_stock(3)

    response = client_for(cashier_user).get('/dashboard/')

    assert response.status_code == 200
    data = response.data
    assert data['today_sales'] == Decimal("550.00")
    assert data['today_orders'] == 3
    assert data['completed_orders'] == 2
    assert data['pending_orders'] == 1
    assert data['low_stock_items'] == 1
    assert data['available_menu_items'] == 3
    assert data['open_alerts'] == 1
    assert len(data['recent_orders']) == 3
    assert data['recent_orders'][0]['customer_name'] == 'Kim'
    assert [row['action'] for row in data['recent_activities']] == ['order_created'] * 3
    assert data['role'] == 'cashier'
    assert 'Reports' not in data['screens']


@pytest.mark.django_db
def test_dashboard_counts_only_open_alerts(client_for, manager_user, milk):
    milk.set_stock(3)
    LowStockAlert.objects.get(inventory=milk).acknowledge(manager_user)

    response = client_for(manager_user).get('/dashboard/')

    assert response.data['open_alerts'] == 0
    assert response.data['low_stock_items'] == 1


@pytest.mark.django_db
def test_dashboard_requires_login(api_client):
    assert api_client.get('/dashboard/').status_code == 401


@pytest.mark.django_db
def test_sales_history(client_for, cashier_user, sales):
    response = client_for(cashier_user).get('/dashboard/sales-history/')

    assert response.status_code == 200
    assert [row['customer_name'] for row in response.data['orders']] == ['Ben', 'Ana']
    assert response.data['totals'] == {
        'total_sales': Decimal("550.00"),
        'total_tax': Decimal("50.00"),
        'total_orders': 2,
    }


@pytest.mark.django_db
def test_sales_history_search(client_for, cashier_user, sales):
    response = client_for(cashier_user).get('/dashboard/sales-history/', {'search': 'ana'})

    assert [row['customer_name'] for row in response.data['orders']] == ['Ana']
    assert response.data['totals']['total_sales'] == Decimal("275.00")


@pytest.mark.django_db
def test_sales_history_needs_view_sales(client_for, staff_user):
    assert client_for(staff_user).get('/dashboard/sales-history/').status_code == 403


@pytest.mark.django_db
def test_sales_report(client_for, manager_user, sales):
    response = client_for(manager_user).get('/dashboard/reports/sales/')

    assert response.status_code == 200
    data = response.data
    assert data['total_sales'] == Decimal("550.00")
    assert data['total_orders'] == 2
    assert data['average_order_value'] == Decimal("275.00")
    assert data['top_items'] == [
        {'name': 'Croissant', 'quantity': 4, 'revenue': Decimal("260.00")},
        {'name': 'Latte', 'quantity': 2, 'revenue': Decimal("240.00")},
    ]
    assert len(data['daily_breakdown']) == 1
    today = data['daily_breakdown'][0]
    assert today['date'] == timezone.localdate()
    assert today['total_orders'] == 2
    assert today['total_tax'] == Decimal("50.00")


@pytest.mark.django_db
def test_sales_report_outside_range_is_empty(client_for, manager_user, sales):
    response = client_for(manager_user).get('/dashboard/reports/sales/', {
        'start_date': '2020-01-01', 'end_date': '2020-01-31',
    })

    assert response.status_code == 200
    assert response.data['total_sales'] == Decimal("0.00")
    assert response.data['total_orders'] == 0
    assert response.data['average_order_value'] == Decimal("0.00")
    assert response.data['top_items'] == []
    assert response.data['daily_breakdown'] == []


@pytest.mark.django_db
@pytest.mark.parametrize('params', [
    {'start_date': '01/02/2024'},
    {'start_date': '2024-02-10', 'end_date': '2024-02-01'},
])
def test_sales_report_rejects_bad_dates(client_for, manager_user, params):
    response = client_for(manager_user).get('/dashboard/reports/sales/', params)
    assert response.status_code == 400


@pytest.mark.django_db
def test_reports_need_view_reports(client_for, cashier_user):
    assert client_for(cashier_user).get('/dashboard/reports/sales/').status_code == 403
    assert client_for(cashier_user).get('/dashboard/reports/sales/export/').status_code == 403


@pytest.mark.django_db
def test_excel_export(client_for, manager_user, sales):
    response = client_for(manager_user).get('/dashboard/reports/sales/export/', {'format': 'excel'})

    assert response.status_code == 200
    assert response['Content-Type'] == 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    assert response['Content-Disposition'].endswith('.xlsx"')

    ws = openpyxl.load_workbook(io.BytesIO(response.content)).active
    values = [cell.value for row in ws.iter_rows() for cell in row]
    assert ws['A1'].value == "Sales Report"
    assert "₱550.00" in values
    assert "₱275.00" in values
    assert "Croissant" in values


@pytest.mark.django_db
def test_pdf_export(client_for, admin_user, sales):
    response = client_for(admin_user).get('/dashboard/reports/sales/export/', {'format': 'pdf'})

    assert response.status_code == 200
    assert response['Content-Type'] == 'application/pdf'
    assert response.content.startswith(b'%PDF')


@pytest.mark.django_db
def test_export_rejects_unknown_format(client_for, manager_user):
    response = client_for(manager_user).get('/dashboard/reports/sales/export/', {'format': 'csv'})
    assert response.status_code == 400
