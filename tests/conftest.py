from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from authentication.models import CustomUser, Profile
from inventory.models import Category, MenuItem, InventoryItem

PASSWORD = "Brew-Secret-123"


def make_user(email, role, **extra):
    user = CustomUser.objects.create_user(email=email, password=PASSWORD, **extra)
    profile = user.profile
    profile.role = role
    profile.full_name = email.split('@')[0].title()
    profile.save()
    return user


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_user(db):
    return make_user("admin@brewpos.local", Profile.ADMIN)


@pytest.fixture
def owner_user(db):
    return make_user("owner@brewpos.local", Profile.OWNER)


@pytest.fixture
def manager_user(db):
    return make_user("manager@brewpos.local", Profile.MANAGER)


@pytest.fixture
def cashier_user(db):
    return make_user("cashier@brewpos.local", Profile.CASHIER)


@pytest.fixture
def staff_user(db):
    return make_user("staff@brewpos.local", Profile.STAFF)


@pytest.fixture
def client_for(api_client):
    """Authenticated client for a given user: client_for(cashier_user)"""
    def _client_for(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _client_for


@pytest.fixture
def menu(db):
    coffee = Category.objects.create(name="Coffee")
    pastry = Category.objects.create(name="Pastry")
    return {
        'latte': MenuItem.objects.create(name="Latte", price=Decimal("120.00"), category=coffee, size="12oz"),
        'americano': MenuItem.objects.create(name="Americano", price=Decimal("100.00"), category=coffee),
        'croissant': MenuItem.objects.create(name="Croissant", price=Decimal("65.00"), category=pastry),
        'seasonal': MenuItem.objects.create(
            name="Pumpkin Spice", price=Decimal("150.00"), category=coffee, is_available=False
        ),
    }


@pytest.fixture
def milk(db):
    return InventoryItem.objects.create(
        item_name="Milk", current_stock=50, min_stock_level=10, max_stock_level=100, unit="liters"
    )


@pytest.fixture
def cart(menu):
    """One latte and two croissants, subtotal 250.00"""
    return [
        {'menu_item_id': menu['latte'].id, 'quantity': 1},
        {'menu_item_id': menu['croissant'].id, 'quantity': 2, 'special_instructions': 'warm please'},
    ]
