"""Shared fixtures for all tests."""
import itertools
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from accounts.models import User
from customers.models import Customer
from offers.models import Offer, OfferStage
from zones.models import ServiceZone, ZoneAssignment


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def west(db):
    return ServiceZone.objects.create(name="WEST", short_form="W", description="West Zone")


@pytest.fixture
def south(db):
    return ServiceZone.objects.create(name="SOUTH", short_form="S", description="South Zone")


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email="admin@test.com",
        password="TestPass123!",
        name="Admin",
        short_form="ADM",
        role=User.Role.ADMIN,
    )


@pytest.fixture
def zone_user(db, west):
    user = User.objects.create_user(
        email="yogesh@test.com",
        password="TestPass123!",
        name="Yogesh",
        short_form="YOG",
        role=User.Role.ZONE_USER,
    )
    ZoneAssignment.objects.create(user=user, zone=west)
    return user


@pytest.fixture
def south_user(db, south):
    user = User.objects.create_user(
        email="sasi@test.com",
        password="TestPass123!",
        name="Sasi",
        short_form="SAS",
        role=User.Role.ZONE_USER,
    )
    ZoneAssignment.objects.create(user=user, zone=south)
    return user


@pytest.fixture
def customer(db, west, admin_user):
    return Customer.objects.create(
        company_name="Acme",
        location="Pune",
        department="Maintenance",
        zone=west,
        created_by=admin_user,
        updated_by=admin_user,
    )


@pytest.fixture
def make_offer(customer, west, zone_user):
    """Factory creating offers with unique reference numbers."""
    counter = itertools.count(1)

    def _make_offer(**overrides):
        data = {
            "offer_reference_number": f"TST-{next(counter):04d}",
            "customer": customer,
            "company": customer.company_name,
            "zone": west,
            "assigned_to": zone_user,
            "stage": OfferStage.INITIAL,
            "offer_value": Decimal("1000.00"),
        }
        data.update(overrides)
        return Offer.objects.create(**data)

    return _make_offer


@pytest.fixture
def admin_client(api_client, admin_user):
    api_client.force_authenticate(user=admin_user)
    return api_client


@pytest.fixture
def zone_client(zone_user):
    client = APIClient()
    client.force_authenticate(user=zone_user)
    return client
