from decimal import Decimal
from types import SimpleNamespace

import pytest

from imports import tasks

FORECAST_URL = "/api/v1/forecast/summary/"


@pytest.mark.django_db
def test_forecast_summary(zone_client, make_offer):
    make_offer(po_expected_month="2025-07", offer_value=Decimal("1200"))

    response = zone_client.get(FORECAST_URL, {"year": "2025"})

    assert response.status_code == 200
    assert response.data["year"] == 2025
    assert [row["month"] for row in response.data["monthly"]] == [7]


@pytest.mark.django_db
@pytest.mark.parametrize("year", ["abc", "1800"])
def test_forecast_rejects_bad_year(zone_client, year):
    response = zone_client.get(FORECAST_URL, {"year": year})
    assert response.status_code == 400


@pytest.fixture
def queued(monkeypatch):
    calls = []

    def fake_delay(name):
        def _delay(**kwargs):
            calls.append((name, kwargs))
            return SimpleNamespace(id=f"{name}-task")
        return _delay

    monkeypatch.setattr(tasks.integrate_processed_offers, "delay", fake_delay("integrate"))
    monkeypatch.setattr(tasks.reconcile_zones, "delay", fake_delay("reconcile"))
    return calls


@pytest.mark.django_db
def test_admin_queues_offer_integration(admin_client, queued):
    response = admin_client.post("/api/v1/imports/integrate/", {"matcher": "similarity"}, format="json")

    assert response.status_code == 202
    assert response.data == {"task_id": "integrate-task"}
    assert queued == [("integrate", {"matcher": "similarity"})]


@pytest.mark.django_db
def test_unknown_matcher_is_rejected(admin_client, queued):
    response = admin_client.post("/api/v1/imports/integrate/", {"matcher": "soundex"}, format="json")
    assert response.status_code == 400
    assert queued == []


@pytest.mark.django_db
def test_admin_queues_reconciliation(admin_client, queued):
    response = admin_client.post("/api/v1/imports/reconcile/")
    assert response.status_code == 202
    assert queued == [("reconcile", {})]


@pytest.mark.django_db
def test_zone_user_cannot_trigger_imports(zone_client, queued):
    assert zone_client.post("/api/v1/imports/integrate/").status_code == 403
    assert zone_client.post("/api/v1/imports/reconcile/").status_code == 403
    assert queued == []
