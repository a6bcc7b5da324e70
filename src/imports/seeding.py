"""Seed the reference data the importers resolve against."""
from __future__ import annotations

import logging
from typing import Iterable

from django.conf import settings
from django.db import transaction

from accounts.models import User
from core.logging import SUCCESS
from customers.models import Customer
from zones.models import ServiceZone, ZoneAssignment

from .readers import CustomerRow

logger = logging.getLogger("offerfunnel.imports")

ZONES = [
    {"name": "WEST", "short_form": "W", "description": "West Zone"},
    {"name": "SOUTH", "short_form": "S", "description": "South Zone"},
    {"name": "NORTH", "short_form": "N", "description": "North Zone"},
    {"name": "EAST", "short_form": "E", "description": "East Zone"},
]

SALES_TEAM = [
    {"name": "Yogesh", "email": "yogesh@example.com", "short_form": "YOG", "role": "ZONE_USER", "zone": "WEST"},
    {"name": "Ashraf", "email": "ashraf@example.com", "short_form": "ASH", "role": "ZONE_USER", "zone": "WEST"},
    {"name": "Rahul", "email": "rahul@example.com", "short_form": "RAH", "role": "ZONE_USER", "zone": "WEST"},
    {"name": "Minesh", "email": "minesh@example.com", "short_form": "MIN", "role": "ZONE_USER", "zone": "WEST"},
    {"name": "Gajendra", "email": "gajendra@example.com", "short_form": "GAJ", "role": "ZONE_USER", "zone": "WEST"},
    {"name": "Pradeep", "email": "pradeep@example.com", "short_form": "PRA", "role": "ZONE_USER", "zone": "WEST"},
    {"name": "Sasi", "email": "sasi@example.com", "short_form": "SAS", "role": "ZONE_USER", "zone": "WEST"},
    {"name": "Vinay", "email": "vinay@example.com", "short_form": "VIN", "role": "ZONE_USER", "zone": "WEST"},
    {"name": "Nitin", "email": "nitin@example.com", "short_form": "NIT", "role": "ZONE_USER", "zone": "WEST"},
    {"name": "Pankaj", "email": "pankaj@example.com", "short_form": "PAN", "role": "ZONE_USER", "zone": "WEST"},
    {"name": "Admin", "email": "admin@example.com", "short_form": "ADM", "role": "ADMIN", "zone": "WEST"},
]


@transaction.atomic
def seed_zones() -> int:
    logger.info("Seeding zones...")
    created = 0
    for data in ZONES:
        _, was_created = ServiceZone.objects.get_or_create(
            name=data["name"],
            defaults={
                "short_form": data["short_form"],
                "description": data["description"],
            },
        )
        if was_created:
            created += 1
            logger.log(SUCCESS, "Created zone: %s", data["name"])
        else:
            logger.info("Zone already exists: %s", data["name"])
    logger.log(SUCCESS, "Processed %d zones", created)
    return created


@transaction.atomic
def seed_users(password: str | None = None) -> int:
    """Create the sales team and an admin, each assigned to their zone."""
    logger.info("Seeding users...")
    password = password or settings.SEED_DEFAULT_PASSWORD
    zones = {zone.name: zone for zone in ServiceZone.objects.all()}
    created = 0
    for data in SALES_TEAM:
        zone = zones.get(data["zone"])
        if zone is None:
            logger.warning("Zone not found for user: %s", data["name"])
            continue
        if User.objects.filter(email=data["email"]).exists():
            logger.info("User already exists: %s", data["name"])
            continue

        is_admin = data["role"] == User.Role.ADMIN
        user = User.objects.create_user(
            email=data["email"],
            password=password,
            name=data["name"],
            short_form=data["short_form"],
            role=data["role"],
            is_staff=is_admin,
        )
        ZoneAssignment.objects.get_or_create(user=user, zone=zone)
        created += 1
        logger.log(SUCCESS, "Created user: %s", data["name"])
    logger.log(SUCCESS, "Processed %d users", created)
    return created


@transaction.atomic
def seed_customers(rows: Iterable[CustomerRow]) -> int:
    """Create missing customers by company name. Unknown zones fall back to the default zone."""
    logger.info("Seeding customers...")
    zones = {zone.name.upper(): zone for zone in ServiceZone.objects.all()}
    default_zone = zones.get(settings.OFFER_DEFAULT_ZONE.upper())
    admin = User.objects.admins().order_by("id").first()
    created = 0
    for row in rows:
        if not row.company_name:
            continue
        if Customer.objects.filter(company_name=row.company_name).exists():
            logger.info("Customer already exists: %s", row.company_name)
            continue
        Customer.objects.create(
            company_name=row.company_name,
            location=row.location,
            department=row.department,
            zone=zones.get(row.zone.upper(), default_zone),
            created_by=admin,
            updated_by=admin,
        )
        created += 1
        logger.log(SUCCESS, "Created customer: %s", row.company_name)
    logger.log(SUCCESS, "Processed %d customers", created)
    return created
