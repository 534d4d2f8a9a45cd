from decimal import Decimal

import pytest
from django.db import DatabaseError
from rest_framework.exceptions import ValidationError

from activity.models import ActivityLog
from authentication.exceptions import InvalidTransition, AuthorizationRequired
from orders.lifecycle import TRANSITIONS, apply_action, next_status, resolve_amount
from orders.models import Order, OrderAction, OrderDiscount, OrderStatus
from tests.conftest import PASSWORD


def make_order(status=OrderStatus.PENDING, subtotal="250.00", tax="25.00"):
    subtotal, tax = Decimal(subtotal), Decimal(tax)
    return Order.objects.create(
        customer_name="Walk-in",
        subtotal=subtotal,
        tax_amount=tax,
        total_amount=subtotal + tax,
        status=status,
    )


@pytest.mark.parametrize('status, action, expected', [
    ('pending', 'approve', 'approved'),
    ('pending', 'preparing', 'preparing'),
    ('pending', 'cancel', 'cancelled'),
    ('approved', 'preparing', 'preparing'),
    ('approved', 'cancel', 'cancelled'),
    ('preparing', 'ready', 'ready'),
    ('ready', 'complete', 'completed'),
    ('ready', 'refund', 'ready'),
    ('ready', 'discount', 'ready'),
    ('completed', 'refund', 'completed'),
    ('completed', 'discount', 'completed'),
    ('cancelled', 'void', 'void'),
    ('completed', 'void', 'void'),
])
def test_allowed_transitions(status, action, expected):
    assert next_status(status, action) == expected


@pytest.mark.parametrize('status, action', [
    ('pending', 'complete'),
    ('pending', 'ready'),
    ('approved', 'ready'),
    ('preparing', 'cancel'),
    ('ready', 'preparing'),
    ('completed', 'cancel'),
    ('cancelled', 'approve'),
    ('cancelled', 'complete'),
    ('void', 'refund'),
    ('void', 'approve'),
])
def test_rejected_transitions(status, action):
    with pytest.raises(InvalidTransition):
        next_status(status, action)


@pytest.mark.parametrize('status, action', [
    ('approved', 'approve'),
    ('preparing', 'preparing'),
    ('ready', 'ready'),
    ('completed', 'complete'),
    ('cancelled', 'cancel'),
])
def test_repeating_an_action_is_accepted(status, action):
    assert next_status(status, action) == status


def test_every_status_has_a_row():
    assert set(TRANSITIONS) == set(OrderStatus)
    assert TRANSITIONS[OrderStatus.VOID] == {}


def test_unknown_action_is_rejected():
    with pytest.raises(InvalidTransition):
        next_status('pending', 'teleport')


# =============== AMOUNTS ===============

@pytest.mark.django_db
def test_resolve_fixed_and_percentage_amounts():
    order = make_order(OrderStatus.COMPLETED)

    assert resolve_amount(order, OrderAction.ActionType.REFUND, "50") == (Decimal("50.00"), None, Decimal("50.00"))
    assert resolve_amount(order, OrderAction.ActionType.DISCOUNT, "10%") == (
        Decimal("25.00"), 'percentage', Decimal("10.00")
    )
    assert resolve_amount(order, OrderAction.ActionType.DISCOUNT, "12.345") == (
        Decimal("12.35"), 'fixed', Decimal("12.35")
    )


@pytest.mark.django_db
@pytest.mark.parametrize('action, raw', [
    ('refund', None),
    ('refund', ''),
    ('refund', 'abc'),
    ('refund', '0'),
    ('refund', '-5'),
    ('refund', '10%'),
    ('refund', '275.01'),
    ('discount', '101%'),
])
def test_resolve_amount_rejects(action, raw):
    order = make_order(OrderStatus.COMPLETED)
    with pytest.raises(ValidationError):
        resolve_amount(order, OrderAction.ActionType(action), raw)


# =============== APPLYING ACTIONS ===============

@pytest.mark.django_db
def test_full_lifecycle_writes_audit_rows(cashier_user):
    order = make_order()

    for action in ['approve', 'preparing', 'ready', 'complete']:
        order = apply_action(order, action, cashier_user)

    assert order.status == OrderStatus.COMPLETED
    history = list(order.actions.values_list('action_type', 'from_status', 'to_status'))
    assert history == [
        ('approve', 'pending', 'approved'),
        ('preparing', 'approved', 'preparing'),
        ('ready', 'preparing', 'ready'),
        ('complete', 'ready', 'completed'),
    ]
    changes = ActivityLog.objects.filter(action='order_status_changed')
    assert changes.count() == 4
    assert all(log.user == cashier_user for log in changes)
    assert ActivityLog.objects.filter(action='order_action').count() == 4


@pytest.mark.django_db
def test_repeat_action_appends_duplicate_row(cashier_user):
    order = apply_action(make_order(), 'preparing', cashier_user)
    order = apply_action(order, 'preparing', cashier_user)

    assert order.status == OrderStatus.PREPARING
    assert order.actions.filter(action_type='preparing').count() == 2


@pytest.mark.django_db
def test_invalid_transition_leaves_order_untouched(cashier_user):
    order = apply_action(make_order(), 'cancel', cashier_user, reason="customer left")

    with pytest.raises(InvalidTransition):
        apply_action(order, 'complete', cashier_user)

    order.refresh_from_db()
    assert order.status == OrderStatus.CANCELLED
    assert order.actions.count() == 1


@pytest.mark.django_db
def test_discount_lowers_total(manager_user):
    order = apply_action(make_order(OrderStatus.COMPLETED), 'discount', manager_user, amount="10%")

    assert order.status == OrderStatus.COMPLETED
    assert order.discount_amount == Decimal("25.00")
    assert order.total_amount == Decimal("250.00")
    discount = OrderDiscount.objects.get(order=order)
    assert discount.discount_type == 'percentage'
    assert discount.discount_value == Decimal("10.00")
    assert discount.applied_by == manager_user
    assert order.actions.get().amount == Decimal("25.00")


@pytest.mark.django_db
def test_senior_discount_keeps_given_type(manager_user):
    order = apply_action(
        make_order(OrderStatus.READY), 'discount', manager_user, amount="20%", discount_type='senior'
    )

    assert order.status == OrderStatus.READY
    assert OrderDiscount.objects.get(order=order).discount_type == 'senior'


@pytest.mark.django_db
def test_refund_records_amount_only(manager_user):
    order = apply_action(make_order(OrderStatus.COMPLETED), 'refund', manager_user, amount="50", reason="cold coffee")

    assert order.total_amount == Decimal("275.00")
    action = order.actions.get()
    assert action.amount == Decimal("50.00")
    assert action.reason == "cold coffee"
    assert not OrderDiscount.objects.exists()


@pytest.mark.django_db
def test_void_requires_admin(cashier_user, manager_user):
    order = make_order(OrderStatus.COMPLETED)

    with pytest.raises(AuthorizationRequired):
        apply_action(order, 'void', cashier_user)
    with pytest.raises(AuthorizationRequired):
        apply_action(order, 'void', cashier_user, supervisor=manager_user)

    order.refresh_from_db()
    assert order.status == OrderStatus.COMPLETED
    assert not order.actions.exists()


@pytest.mark.django_db
def test_void_with_supervisor(cashier_user, admin_user):
    order = apply_action(make_order(OrderStatus.COMPLETED), 'void', cashier_user, supervisor=admin_user)

    assert order.status == OrderStatus.VOID
    action = order.actions.get()
    assert action.action_by == cashier_user
    assert action.authorized_by == admin_user


@pytest.mark.django_db
def test_owner_can_void_directly(owner_user):
    order = apply_action(make_order(), 'void', owner_user)

    assert order.status == OrderStatus.VOID
    assert order.actions.get().authorized_by is None


@pytest.mark.django_db
def test_void_and_delete_follow_the_permission_map(client_for, manager_user, monkeypatch):
    from authentication.models import Profile
    from authentication.permissions import DEFAULT_PERMISSIONS, Permissions
    monkeypatch.setitem(DEFAULT_PERMISSIONS, Profile.MANAGER, [
        Permissions.MANAGE_ORDERS, Permissions.VOID_ORDERS, Permissions.DELETE_ORDERS,
    ])

    voided = apply_action(make_order(OrderStatus.COMPLETED), 'void', manager_user)
    assert voided.status == OrderStatus.VOID
    assert voided.actions.get().authorized_by is None

    response = client_for(manager_user).delete(f'/orders/{voided.pk}/')
    assert response.status_code == 204
    assert not Order.objects.filter(pk=voided.pk).exists()


@pytest.mark.django_db
def test_action_survives_activity_log_failure(cashier_user, monkeypatch):
    def broken_create(**kwargs):
        raise DatabaseError("activity_logs is unavailable")

    monkeypatch.setattr(ActivityLog.objects, 'create', broken_create)

    order = apply_action(make_order(), 'approve', cashier_user)

    order.refresh_from_db()
    assert order.status == OrderStatus.APPROVED
    assert order.actions.count() == 1


# =============== ACTION ENDPOINTS ===============

@pytest.mark.django_db
def test_cancel_through_api(client_for, cashier_user):
    order = make_order()
    client = client_for(cashier_user)

    response = client.post(f'/orders/{order.pk}/actions/', {'action': 'cancel', 'reason': 'duplicate'}, format='json')

    assert response.status_code == 200
    assert response.data['status'] == OrderStatus.CANCELLED
    assert response.data['allowed_actions'] == ['void']
    assert response.data['actions'][0]['reason'] == 'duplicate'

    conflict = client.post(f'/orders/{order.pk}/actions/', {'action': 'complete'}, format='json')
    assert conflict.status_code == 409
    assert conflict.data['error'] is True
    order.refresh_from_db()
    assert order.status == OrderStatus.CANCELLED


@pytest.mark.django_db
def test_cancelled_order_leaves_active_views(client_for, cashier_user):
    kept = make_order()
    cancelled = make_order()
    client = client_for(cashier_user)

    client.post(f'/orders/{cancelled.pk}/actions/', {'action': 'cancel'}, format='json')

    active = client.get('/orders/', {'active': 'true'})
    assert [row['id'] for row in active.data] == [kept.id]
    kitchen = client.get('/orders/kitchen/')
    assert [row['id'] for row in kitchen.data] == [kept.id]
    assert cancelled.actions.get().action_type == 'cancel'


@pytest.mark.django_db
def test_void_through_api_needs_valid_supervisor(client_for, cashier_user, admin_user):
    order = make_order(OrderStatus.COMPLETED)
    client = client_for(cashier_user)
    url = f'/orders/{order.pk}/actions/'

    assert client.post(url, {'action': 'void'}, format='json').status_code == 403
    assert client.post(url, {
        'action': 'void', 'supervisor_email': admin_user.email, 'supervisor_password': 'wrong',
    }, format='json').status_code == 403

    response = client.post(url, {
        'action': 'void', 'supervisor_email': admin_user.email, 'supervisor_password': PASSWORD, 'reason': 'test sale',
    }, format='json')

    assert response.status_code == 200
    assert response.data['status'] == OrderStatus.VOID
    assert response.data['actions'][0]['authorized_by'] == admin_user.id


@pytest.mark.django_db
def test_discount_through_api_validates_amount(client_for, manager_user):
    order = make_order(OrderStatus.COMPLETED)
    client = client_for(manager_user)

    missing = client.post(f'/orders/{order.pk}/actions/', {'action': 'discount'}, format='json')
    assert missing.status_code == 400
    assert 'amount' in missing.data['details']

    response = client.post(f'/orders/{order.pk}/actions/', {'action': 'discount', 'amount': '15'}, format='json')
    assert response.status_code == 200
    assert response.data['total_amount'] == "260.00"
    assert response.data['discount_amount'] == "15.00"
    assert response.data['discounts'][0]['discount_type'] == 'fixed'


@pytest.mark.django_db
def test_action_history_endpoint(client_for, cashier_user):
    order = make_order()
    for action in ['approve', 'preparing']:
        apply_action(order, action, cashier_user)

    response = client_for(cashier_user).get(f'/orders/{order.pk}/actions/history/')

    assert response.status_code == 200
    assert [row['action_type'] for row in response.data] == ['approve', 'preparing']
    assert response.data[0]['action_by_name'] == 'Cashier'


@pytest.mark.django_db
def test_transitions_endpoint(client_for, staff_user):
    response = client_for(staff_user).get('/orders/transitions/')

    assert response.status_code == 200
    assert response.data['pending']['approve'] == 'approved'
    assert response.data['ready']['complete'] == 'completed'
    assert response.data['void'] == {}
