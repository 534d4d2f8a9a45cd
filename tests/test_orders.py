from datetime import date
from decimal import Decimal

import pytest
from django.db import DatabaseError

from activity.models import ActivityLog, SalesLog
from orders.models import Order, OrderItem, OrderSequence, OrderStatus
from orders.numbering import generate_order_number


# =============== ORDER NUMBERS ===============

@pytest.mark.django_db
def test_order_numbers_are_sequential():
    first = generate_order_number(on_date=date(2024, 3, 5))
    second = generate_order_number(on_date=date(2024, 3, 5))

    assert first == "ORD-20240305-0001"
    assert second == "ORD-20240305-0002"


@pytest.mark.django_db
def test_order_number_counter_is_seeded_by_migration():
    assert OrderSequence.objects.filter(name='order_number', value=0).exists()


@pytest.mark.django_db
def test_order_number_counter_does_not_reset_or_truncate():
    OrderSequence.objects.filter(name='order_number').update(value=9999)

    assert generate_order_number(on_date=date(2024, 3, 5)) == "ORD-20240305-10000"
    assert generate_order_number(on_date=date(2024, 3, 6)) == "ORD-20240306-10001"


@pytest.mark.django_db
def test_order_list_sorts_by_creation_past_four_digits(client_for, cashier_user):
    OrderSequence.objects.filter(name='order_number').update(value=9998)
    older = Order.objects.create(customer_name="Guest A")
    newer = Order.objects.create(customer_name="Guest B")

    response = client_for(cashier_user).get('/orders/')

    assert older.order_number.endswith("-9999")
    assert newer.order_number.endswith("-10000")
    assert [row['id'] for row in response.data] == [newer.id, older.id]


@pytest.mark.django_db
def test_saved_orders_get_unique_numbers():
    orders = [Order.objects.create(customer_name=f"Guest {n}") for n in range(3)]
    numbers = [order.order_number for order in orders]

    assert len(set(numbers)) == 3
    assert all(number.startswith("ORD-") for number in numbers)


# =============== CHECKOUT ===============

@pytest.mark.django_db
def test_pos_checkout(client_for, cashier_user, cart):
    response = client_for(cashier_user).post('/orders/checkout/pos/', {
        'items': cart,
        'payment_method': 'card',
        'customer_name': 'Ana',
    }, format='json')

    assert response.status_code == 201
    data = response.data
    assert data['subtotal'] == "250.00"
    assert data['tax_amount'] == "25.00"
    assert data['total_amount'] == "275.00"
    assert data['status'] == OrderStatus.COMPLETED
    assert data['source'] == 'pos'
    assert data['payment_method'] == 'card'
    assert data['cashier'] == cashier_user.id
    assert len(data['items']) == 2

    order = Order.objects.get(pk=data['id'])
    sale = SalesLog.objects.get(order=order)
    assert sale.action == 'sale_completed'
    assert sale.amount == Decimal("275.00")
    assert sale.user == cashier_user
    assert sale.metadata == {'items_count': 2, 'payment_method': 'card', 'customer_name': 'Ana'}

    created = ActivityLog.objects.get(action='order_created')
    assert created.description == f"Order {order.order_number} created"
    assert created.metadata['total_amount'] == "275.00"


@pytest.mark.django_db
def test_pos_checkout_requires_login(api_client, cart):
    response = api_client.post('/orders/checkout/pos/', {'items': cart}, format='json')

    assert response.status_code == 401
    assert not Order.objects.exists()


@pytest.mark.django_db
def test_online_checkout(api_client, cart):
    response = api_client.post('/orders/checkout/online/', {
        'items': cart,
        'customer_name': 'Ben',
        'customer_phone': '+63 917 555 0101',
        'order_type': 'dine-in',
        'customer_notes': 'less ice',
    }, format='json')

    assert response.status_code == 201
    data = response.data
    assert data['tax_amount'] == "30.00"
    assert data['total_amount'] == "280.00"
    assert data['status'] == OrderStatus.PENDING
    assert data['payment_method'] == 'pending'
    assert data['order_type'] == 'dine-in'
    assert data['source'] == 'online'
    assert data['cashier'] is None
    assert not SalesLog.objects.exists()


@pytest.mark.django_db
@pytest.mark.parametrize('missing', ['customer_name', 'customer_phone'])
def test_online_checkout_requires_contact_details(api_client, cart, missing):
    payload = {'items': cart, 'customer_name': 'Ben', 'customer_phone': '09175550101'}
    payload.pop(missing)

    response = api_client.post('/orders/checkout/online/', payload, format='json')

    assert response.status_code == 400
    assert missing in response.data['details']
    assert not Order.objects.exists()


@pytest.mark.django_db
def test_online_checkout_rejects_bad_phone(api_client, cart):
    response = api_client.post('/orders/checkout/online/', {
        'items': cart, 'customer_name': 'Ben', 'customer_phone': 'call me',
    }, format='json')

    assert response.status_code == 400
    assert 'customer_phone' in response.data['details']


@pytest.mark.django_db
def test_kiosk_checkout(api_client, cart):
    response = api_client.post('/orders/checkout/kiosk/', {
        'items': cart,
        'order_type': 'dine-in',
        'payment_method': 'card',
    }, format='json')

    assert response.status_code == 201
    data = response.data
    assert data['tax_amount'] == "0.00"
    assert data['total_amount'] == "250.00"
    assert data['status'] == OrderStatus.PENDING
    assert data['order_type'] == 'takeout'
    assert data['payment_method'] == 'cash'
    assert data['source'] == 'kiosk'


@pytest.mark.django_db
def test_checkout_uses_menu_prices(api_client, menu):
    response = api_client.post('/orders/checkout/kiosk/', {
        'items': [{'menu_item_id': menu['latte'].id, 'quantity': 3, 'unit_price': '1.00'}],
    }, format='json')

    assert response.status_code == 201
    line = response.data['items'][0]
    assert line['unit_price'] == "120.00"
    assert line['total_price'] == "360.00"


@pytest.mark.django_db
def test_checkout_rejects_empty_cart(api_client):
    response = api_client.post('/orders/checkout/kiosk/', {'items': []}, format='json')

    assert response.status_code == 400
    assert 'items' in response.data['details']
    assert not Order.objects.exists()


@pytest.mark.django_db
def test_checkout_rejects_unavailable_item(api_client, menu):
    response = api_client.post('/orders/checkout/kiosk/', {
        'items': [
            {'menu_item_id': menu['latte'].id, 'quantity': 1},
            {'menu_item_id': menu['seasonal'].id, 'quantity': 1},
        ],
    }, format='json')

    assert response.status_code == 400
    assert not Order.objects.exists()
    assert not OrderItem.objects.exists()


@pytest.mark.django_db
@pytest.mark.parametrize('quantity', [0, -2])
def test_checkout_rejects_non_positive_quantity(api_client, menu, quantity):
    response = api_client.post('/orders/checkout/kiosk/', {
        'items': [{'menu_item_id': menu['latte'].id, 'quantity': quantity}],
    }, format='json')

    assert response.status_code == 400
    assert not Order.objects.exists()


@pytest.mark.django_db
def test_checkout_rejects_unknown_menu_item(api_client, menu):
    response = api_client.post('/orders/checkout/kiosk/', {
        'items': [{'menu_item_id': 999999, 'quantity': 1}],
    }, format='json')

    assert response.status_code == 400


@pytest.mark.django_db
def test_line_totals_are_frozen(api_client, menu, cart):
    response = api_client.post('/orders/checkout/kiosk/', {'items': cart}, format='json')
    order = Order.objects.get(pk=response.data['id'])

    menu['latte'].price = Decimal("999.00")
    menu['latte'].save()

    line = order.items.get(menu_item=menu['latte'])
    assert line.unit_price == Decimal("120.00")
    assert line.total_price == Decimal("120.00")

    line.special_instructions = "extra hot"
    line.save()
    line.refresh_from_db()
    assert line.total_price == Decimal("120.00")


@pytest.mark.django_db
def test_checkout_survives_activity_log_failure(api_client, cart, monkeypatch):
    def broken_create(**kwargs):
        raise DatabaseError("activity_logs is unavailable")

    monkeypatch.setattr(ActivityLog.objects, 'create', broken_create)

    response = api_client.post('/orders/checkout/kiosk/', {'items': cart}, format='json')

    assert response.status_code == 201
    assert Order.objects.filter(pk=response.data['id']).exists()
    assert OrderItem.objects.filter(order_id=response.data['id']).count() == 2


@pytest.mark.django_db
def test_menu_item_on_an_order_cannot_be_deleted(api_client, client_for, manager_user, menu, cart):
    api_client.post('/orders/checkout/kiosk/', {'items': cart}, format='json')

    response = client_for(manager_user).delete(f"/inventory/menu/{menu['latte'].pk}/")

    assert response.status_code == 400
    assert response.data['error'] is True


# =============== ORDER MANAGEMENT ===============

@pytest.fixture
def placed_orders(api_client, client_for, cashier_user, cart):
    kiosk = api_client.post('/orders/checkout/kiosk/', {'items': cart, 'customer_name': 'Kim'}, format='json')
    online = api_client.post('/orders/checkout/online/', {
        'items': cart, 'customer_name': 'Lee', 'customer_phone': '09175550101',
    }, format='json')
    pos = client_for(cashier_user).post('/orders/checkout/pos/', {'items': cart}, format='json')
    return {
        'kiosk': Order.objects.get(pk=kiosk.data['id']),
        'online': Order.objects.get(pk=online.data['id']),
        'pos': Order.objects.get(pk=pos.data['id']),
    }


@pytest.mark.django_db
def test_order_list_filters(client_for, cashier_user, placed_orders):
    client = client_for(cashier_user)

    all_orders = client.get('/orders/')
    assert all_orders.status_code == 200
    assert len(all_orders.data) == 3

    active = client.get('/orders/', {'active': 'true'})
    assert {row['source'] for row in active.data} == {'kiosk', 'online'}

    by_source = client.get('/orders/', {'source': 'online'})
    assert [row['customer_name'] for row in by_source.data] == ['Lee']

    searched = client.get('/orders/', {'search': placed_orders['kiosk'].order_number})
    assert [row['id'] for row in searched.data] == [placed_orders['kiosk'].id]


@pytest.mark.django_db
def test_order_list_requires_login(api_client):
    assert api_client.get('/orders/').status_code == 401


@pytest.mark.django_db
def test_order_detail(client_for, cashier_user, placed_orders):
    order = placed_orders['online']

    response = client_for(cashier_user).get(f'/orders/{order.pk}/')

    assert response.status_code == 200
    assert response.data['order_number'] == order.order_number
    assert len(response.data['items']) == 2
    assert response.data['actions'] == []
    assert response.data['allowed_actions'] == ['approve', 'preparing', 'cancel', 'void']


@pytest.mark.django_db
def test_kitchen_display_shows_active_orders_oldest_first(client_for, staff_user, placed_orders):
    response = client_for(staff_user).get('/orders/kitchen/')

    assert response.status_code == 200
    assert [row['id'] for row in response.data] == [placed_orders['kiosk'].id, placed_orders['online'].id]


@pytest.mark.django_db
def test_order_statistics(client_for, cashier_user, placed_orders):
    response = client_for(cashier_user).get('/orders/statistics/')

    assert response.status_code == 200
    assert response.data['pending'] == 2
    assert response.data['completed'] == 1
    assert response.data['void'] == 0
    assert response.data['total'] == 3
    assert response.data['active'] == 2


@pytest.mark.django_db
def test_only_admins_delete_orders(client_for, manager_user, admin_user, placed_orders):
    order = placed_orders['pos']

    assert client_for(manager_user).delete(f'/orders/{order.pk}/').status_code == 403

    response = client_for(admin_user).delete(f'/orders/{order.pk}/')

    assert response.status_code == 204
    assert not Order.objects.filter(pk=order.pk).exists()
    assert not OrderItem.objects.filter(order_id=order.pk).exists()
    # sales history outlives the order
    assert SalesLog.objects.filter(action='sale_completed', order__isnull=True).exists()
    deleted = ActivityLog.objects.get(action='order_deleted')
    assert deleted.user == admin_user
