"""Domain services for customers."""

from __future__ import annotations

from django.db import transaction

from customers.models import DEFAULT_CONTACT_NAME, Asset, Contact, Customer


def get_or_create_contact(
    customer: Customer,
    contact_person_name: str,
    *,
    contact_number: str = "",
    email: str = "",
) -> tuple[Contact, bool]:
    """Return the active contact named ``contact_person_name`` for a customer.

    A new contact is created when none exists; the flag says which happened.
    """
    existing = (
        Contact.objects
        .filter(
            customer=customer,
            contact_person_name=contact_person_name,
            is_active=True,
        )
        .order_by("id")
        .first()
    )
    if existing:
        return existing, False

    contact = Contact.objects.create(
        customer=customer,
        contact_person_name=contact_person_name,
        contact_number=contact_number or "",
        email=email or "",
        is_primary=not customer.contacts.filter(is_active=True).exists(),
        is_active=True,
    )
    return contact, True


@transaction.atomic
def get_or_create_default_contact(customer: Customer) -> tuple[Contact, bool]:
    """Return the customer's placeholder contact, used when a row names nobody."""
    return get_or_create_contact(customer, DEFAULT_CONTACT_NAME)


def get_or_create_asset(
    customer: Customer,
    machine_serial_number: str,
    *,
    asset_name: str = "",
    model: str = "",
) -> tuple[Asset, bool]:
    """Return the active asset with this serial number, creating it if needed."""
    existing = (
        Asset.objects
        .filter(
            customer=customer,
            machine_serial_number=machine_serial_number,
            is_active=True,
        )
        .order_by("id")
        .first()
    )
    if existing:
        return existing, False

    asset = Asset.objects.create(
        customer=customer,
        asset_name=asset_name or f"Machine {machine_serial_number}",
        machine_serial_number=machine_serial_number,
        model=model or "",
        is_active=True,
    )
    return asset, True
