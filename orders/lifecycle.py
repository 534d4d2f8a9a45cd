"""
Order lifecycle.

TRANSITIONS is the single table of which action may be applied to an order
in which status, and the status it leads to. Every status change in the
application goes through apply_action().
"""
import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction
from rest_framework.exceptions import ValidationError

from activity.services import log_activity
from authentication.exceptions import InvalidTransition, AuthorizationRequired
from authentication.permissions import Permissions, user_has_permission
from brewpos.utils import to_money
from .models import Order, OrderAction, OrderDiscount, OrderStatus

logger = logging.getLogger(__name__)

Action = OrderAction.ActionType

TRANSITIONS = {
    OrderStatus.PENDING: {
        Action.APPROVE: OrderStatus.APPROVED,
        Action.PREPARING: OrderStatus.PREPARING,
        Action.CANCEL: OrderStatus.CANCELLED,
        Action.VOID: OrderStatus.VOID,
    },
    OrderStatus.APPROVED: {
        Action.PREPARING: OrderStatus.PREPARING,
        Action.CANCEL: OrderStatus.CANCELLED,
        Action.VOID: OrderStatus.VOID,
    },
    OrderStatus.PREPARING: {
        Action.READY: OrderStatus.READY,
        Action.VOID: OrderStatus.VOID,
    },
    OrderStatus.READY: {
        Action.COMPLETE: OrderStatus.COMPLETED,
        Action.REFUND: OrderStatus.READY,
        Action.DISCOUNT: OrderStatus.READY,
        Action.VOID: OrderStatus.VOID,
    },
    OrderStatus.COMPLETED: {
        Action.REFUND: OrderStatus.COMPLETED,
        Action.DISCOUNT: OrderStatus.COMPLETED,
        Action.VOID: OrderStatus.VOID,
    },
    OrderStatus.CANCELLED: {
        Action.VOID: OrderStatus.VOID,
    },
    OrderStatus.VOID: {},
}

# Status each status-changing action leads to; re-applying it is accepted
ACTION_TARGETS = {
    Action.APPROVE: OrderStatus.APPROVED,
    Action.PREPARING: OrderStatus.PREPARING,
    Action.READY: OrderStatus.READY,
    Action.COMPLETE: OrderStatus.COMPLETED,
    Action.CANCEL: OrderStatus.CANCELLED,
    Action.VOID: OrderStatus.VOID,
}

MONETARY_ACTIONS = (Action.REFUND, Action.DISCOUNT)


def next_status(current, action):
    try:
        current = OrderStatus(current)
        action = Action(action)
    except ValueError:
        raise InvalidTransition(f"Unknown status or action: {current} / {action}")

    allowed = TRANSITIONS[current]
    if action in allowed:
        return allowed[action]
    if ACTION_TARGETS.get(action) == current:
        return current
    raise InvalidTransition(f"Cannot {action.value} an order that is {current.value}.")


def allowed_actions(status):
    return [action.value for action in TRANSITIONS[OrderStatus(status)]]


def resolve_amount(order, action, raw_amount, discount_type=None):
    """
    Turn the amount entered for a refund or discount into money.

    Accepts a fixed amount ("50", "12.50") or, for discounts, a percentage
    of the subtotal ("10%"). Returns (amount, discount_type, discount_value).
    """
    text = str(raw_amount).strip() if raw_amount is not None else ''
    if not text:
        raise ValidationError({'amount': f"An amount is required to {action}."})

    is_percentage = text.endswith('%')
    try:
        value = Decimal(text.rstrip('%').strip())
    except InvalidOperation:
        raise ValidationError({'amount': f"'{text}' is not a valid amount."})

    if value <= 0:
        raise ValidationError({'amount': "Amount must be greater than zero."})

    if is_percentage:
        if action != Action.DISCOUNT:
            raise ValidationError({'amount': "Refunds must be a fixed amount."})
        if value > 100:
            raise ValidationError({'amount': "A percentage discount cannot exceed 100%."})
        amount = to_money(order.subtotal * value / Decimal('100'))
    else:
        amount = to_money(value)

    if amount > order.total_amount:
        raise ValidationError({'amount': f"Amount cannot exceed the order total of {order.total_amount}."})

    if action == Action.DISCOUNT and not discount_type:
        discount_type = 'percentage' if is_percentage else 'fixed'
    return amount, discount_type, to_money(value)


def authorize_void(user, supervisor=None):
    """Voids need void_orders, held by the acting user or by a supervisor whose credentials were checked"""
    if user_has_permission(user, Permissions.VOID_ORDERS):
        return None
    if supervisor is not None and user_has_permission(supervisor, Permissions.VOID_ORDERS):
        return supervisor
    raise AuthorizationRequired()


def apply_action(order, action, user, amount=None, reason='', notes='', discount_type=None, supervisor=None):
    """
    Apply a lifecycle action to an order.

    The status change and its OrderAction row (plus the OrderDiscount row
    for discounts) are written in one transaction. The activity log entry is
    best effort and written afterwards.
    """
    action = Action(action)
    authorized_by = authorize_void(user, supervisor) if action == Action.VOID else None

    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        old_status = order.status
        new_status = next_status(old_status, action)

        money = None
        discount_value = None
        if action in MONETARY_ACTIONS:
            money, discount_type, discount_value = resolve_amount(order, action, amount, discount_type)

        order.status = new_status
        update_fields = ['status', 'updated_at']
        if action == Action.DISCOUNT:
            order.discount_amount = to_money(order.discount_amount + money)
            order.total_amount = max(to_money(order.total_amount - money), Decimal('0.00'))
            update_fields += ['discount_amount', 'total_amount']

        order._acting_user = user
        order.save(update_fields=update_fields)

        OrderAction.objects.create(
            order=order,
            action_type=action,
            action_by=user,
            authorized_by=authorized_by,
            from_status=old_status,
            to_status=new_status,
            amount=money,
            reason=reason or '',
            notes=notes or '',
        )
        if action == Action.DISCOUNT:
            OrderDiscount.objects.create(
                order=order,
                discount_type=discount_type,
                discount_value=discount_value,
                discount_amount=money,
                applied_by=user,
            )

    logger.info(f"Order {order.order_number}: {action.value} ({old_status} -> {new_status}) by {user}")
    log_activity(
        'order_action',
        f"Order {order.order_number}: {action.label.lower()}",
        user=user,
        metadata={'order_id': order.pk, 'action': action.value, 'new_status': new_status, 'amount': money},
    )
    return order
