"""
Resolve free-text spreadsheet names to database ids.

The resolver keeps three name -> id indexes (customers, users, zones), built
once per run from the active rows. Lookups try the exact lower-cased name
first and only then fall back to a pluggable ``NameMatcher``.
"""
from __future__ import annotations

import logging
from typing import Iterable, Mapping, Protocol

from rapidfuzz import fuzz, process

logger = logging.getLogger("offerfunnel.imports")

Index = Mapping[str, int]


def normalize_key(name) -> str:
    if name is None:
        return ""
    return str(name).strip().lower()


def build_index(pairs: Iterable[tuple[str, int]]) -> dict[str, int]:
    """Build a lower-cased name index, skipping blank names."""
    index: dict[str, int] = {}
    for name, pk in pairs:
        key = normalize_key(name)
        if key:
            index[key] = pk
    return index


class NameMatcher(Protocol):
    def match(self, query: str, index: Index) -> tuple[str, int] | None:
        """Return the ``(key, id)`` chosen for a normalized query, or ``None``."""


class ContainmentMatcher:
    """First key that contains the query or is contained in it."""

    def match(self, query, index):
        for key, pk in index.items():
            if key in query or query in key:
                return key, pk
        return None


class FirstTokenMatcher:
    """Containment on the first word of the query (``"yogesh k"`` -> ``"yogesh"``)."""

    def match(self, query, index):
        tokens = query.split()
        if not tokens:
            return None
        token = tokens[0]
        for key, pk in index.items():
            if key in token or token in key:
                return key, pk
        return None


class SimilarityMatcher:
    """Best token-set ratio (0-100) at or above ``threshold``; earlier keys win ties."""

    def __init__(self, threshold: float = 80):
        self.threshold = threshold

    def match(self, query, index):
        if not index:
            return None
        hit = process.extractOne(
            query,
            list(index.keys()),
            scorer=fuzz.token_set_ratio,
            score_cutoff=self.threshold,
        )
        if hit is None:
            return None
        key = hit[0]
        return key, index[key]


MATCHERS = {
    "containment": ContainmentMatcher,
    "similarity": SimilarityMatcher,
}


def get_matcher(name: str) -> NameMatcher:
    try:
        return MATCHERS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown matcher '{name}' (choose from {', '.join(sorted(MATCHERS))})"
        ) from None


class EntityResolver:
    def __init__(
        self,
        customers: Index,
        users: Index,
        zones: Index,
        *,
        customer_matcher: NameMatcher | None = None,
        user_matcher: NameMatcher | None = None,
    ):
        self.customers = dict(customers)
        self.users = dict(users)
        self.zones = dict(zones)
        self.customer_matcher = customer_matcher or ContainmentMatcher()
        self.user_matcher = user_matcher or FirstTokenMatcher()

    @classmethod
    def from_database(cls, **kwargs) -> "EntityResolver":
        """Index the active customers, users and zones."""
        from accounts.models import User
        from customers.models import Customer
        from zones.models import ServiceZone

        logger.info("Initializing caches...")
        customers = build_index(
            Customer.objects.filter(is_active=True)
            .order_by("id")
            .values_list("company_name", "id")
        )
        logger.info("Cached %d customers", len(customers))
        zones = build_index(
            ServiceZone.objects.filter(is_active=True)
            .order_by("id")
            .values_list("name", "id")
        )
        logger.info("Cached %d zones", len(zones))
        users = build_index(
            User.objects.filter(is_active=True)
            .order_by("id")
            .values_list("name", "id")
        )
        logger.info("Cached %d users", len(users))
        return cls(customers, users, zones, **kwargs)

    def find_customer_id(self, name) -> int | None:
        query = normalize_key(name)
        if not query:
            return None
        if query in self.customers:
            return self.customers[query]
        hit = self.customer_matcher.match(query, self.customers)
        if hit is not None:
            logger.info('Fuzzy matched customer: "%s" -> "%s"', name, hit[0])
            return hit[1]
        logger.warning('Customer not found: "%s"', name)
        return None

    def find_user_id(self, name) -> int | None:
        query = normalize_key(name)
        if not query:
            return None
        if query in self.users:
            return self.users[query]
        hit = self.user_matcher.match(query, self.users)
        if hit is not None:
            logger.info('First name matched user: "%s" -> "%s"', name, hit[0])
            return hit[1]
        logger.warning('User not found: "%s"', name)
        return None

    def find_zone_id(self, name) -> int | None:
        query = normalize_key(name)
        if not query:
            return None
        if query in self.zones:
            return self.zones[query]
        logger.warning('Zone not found: "%s"', name)
        return None
