from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
import random

import pytest
from rest_framework.test import APIClient

from accounts.models import User
from catalog.models import Product
from ledger.services import add_funds


@pytest.fixture
def owner(db):
    return User.objects.create_user(
        email="owner@test.com",
        password="testpass123",
        first_name="Asha",
        last_name="Rao",
        business_name="Rao Gadgets",
    )


@pytest.fixture
def other_owner(db):
    return User.objects.create_user(
        email="other@test.com",
        password="testpass123",
        first_name="Other",
        last_name="Owner",
    )


@pytest.fixture
def product(owner):
    return Product.objects.create(
        owner=owner,
        name="Wireless Earbuds",
        category="Electronics",
        cost_price=Decimal("25.00"),
        selling_price=Decimal("49.99"),
    )


@pytest.fixture
def second_product(owner):
    return Product.objects.create(
        owner=owner,
        name="Phone Stand",
        category="Accessories",
        sku="STAND-01",
        cost_price=Decimal("4.50"),
        selling_price=Decimal("12.00"),
    )


@pytest.fixture
def foreign_product(other_owner):
    return Product.objects.create(
        owner=other_owner,
        name="Yoga Mat",
        category="Fitness",
        cost_price=Decimal("10.00"),
        selling_price=Decimal("30.00"),
    )


@pytest.fixture
def funded_owner(owner):
    add_funds(owner, Decimal("1000.00"))
    return owner


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def owner_client(api_client, owner):
    api_client.force_authenticate(user=owner)
    return api_client


@pytest.fixture
def fixed_now():
    return datetime(2025, 6, 2, 9, 30, tzinfo=dt_timezone.utc)


@pytest.fixture
def rng():
    return random.Random(1234)
