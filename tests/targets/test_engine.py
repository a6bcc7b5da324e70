from datetime import datetime
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.utils import timezone

from offers.models import Offer, OfferStage
from targets.engine import TargetPerformanceEngine
from targets.models import Target


def _at(year, month, day=15):
    return datetime(year, month, day, 12, tzinfo=timezone.get_current_timezone())


def _created(offer, when):
    Offer.objects.filter(pk=offer.pk).update(created_at=when)
    return offer


class TestPeriodBounds:
    def test_monthly(self):
        start, end = TargetPerformanceEngine.period_bounds("2025-03", "MONTHLY")
        assert (start.year, start.month, start.day) == (2025, 3, 1)
        assert (end.year, end.month, end.day) == (2025, 4, 1)
        assert start.tzinfo is not None

    def test_december_rolls_into_next_year(self):
        start, end = TargetPerformanceEngine.period_bounds("2025-12", "MONTHLY")
        assert (end.year, end.month) == (2026, 1)

    def test_yearly(self):
        start, end = TargetPerformanceEngine.period_bounds("2025", "YEARLY")
        assert (start.year, start.month) == (2025, 1)
        assert (end.year, end.month) == (2026, 1)

    @pytest.mark.parametrize(
        "period,period_type",
        [
            ("2025-13", "MONTHLY"),
            ("2025-00", "MONTHLY"),
            ("2025", "MONTHLY"),
            ("March 2025", "MONTHLY"),
            ("2025-03", "YEARLY"),
            ("1899", "YEARLY"),
            ("2101-01", "MONTHLY"),
            ("2025", "WEEKLY"),
            ("", "MONTHLY"),
        ],
    )
    def test_rejects_bad_periods(self, period, period_type):
        with pytest.raises(ValueError):
            TargetPerformanceEngine.period_bounds(period, period_type)


@pytest.mark.django_db
class TestTargetValidation:
    def test_zone_target_needs_exactly_a_zone(self, west, zone_user):
        with pytest.raises(ValidationError):
            Target(scope="ZONE", period_type="MONTHLY", target_period="2025-03", target_value=1).clean()
        with pytest.raises(ValidationError):
            Target(
                scope="ZONE", zone=west, user=zone_user,
                period_type="MONTHLY", target_period="2025-03", target_value=1,
            ).clean()

    def test_user_target_needs_exactly_a_user(self, west):
        with pytest.raises(ValidationError):
            Target(scope="USER", zone=west, period_type="YEARLY", target_period="2025", target_value=1).clean()

    def test_period_format_is_checked(self, west):
        with pytest.raises(ValidationError) as excinfo:
            Target(scope="ZONE", zone=west, period_type="MONTHLY", target_period="2025", target_value=1).clean()
        assert "target_period" in excinfo.value.message_dict

    def test_negative_value_is_rejected(self, west):
        with pytest.raises(ValidationError) as excinfo:
            Target(
                scope="ZONE", zone=west, period_type="MONTHLY", target_period="2025-03",
                target_value=Decimal("-1"),
            ).clean()
        assert "target_value" in excinfo.value.message_dict

    def test_valid_target_passes(self, zone_user):
        Target(
            scope="USER", user=zone_user, period_type="YEARLY", target_period="2025",
            target_value=Decimal("500000"),
        ).clean()


@pytest.mark.django_db
class TestActuals:
    def test_zone_target_counts_booked_offers_created_in_the_period(self, west, south, make_offer):
        engine = TargetPerformanceEngine()
        _created(make_offer(stage=OfferStage.WON, offer_value=Decimal("1000"), po_value=Decimal("900")), _at(2025, 3))
        _created(make_offer(stage=OfferStage.ORDER_BOOKED, offer_value=Decimal("500")), _at(2025, 3, 31))
        _created(make_offer(stage=OfferStage.NEGOTIATION, offer_value=Decimal("700")), _at(2025, 3))
        _created(make_offer(stage=OfferStage.WON, offer_value=Decimal("800")), _at(2025, 4, 1))
        _created(make_offer(stage=OfferStage.WON, offer_value=Decimal("400"), zone=south), _at(2025, 3))
        _created(make_offer(stage=OfferStage.PO_RECEIVED, offer_value=None), _at(2025, 3))
        target = Target.objects.create(
            scope="ZONE", zone=west, period_type="MONTHLY", target_period="2025-03",
            target_value=Decimal("2800"), target_offer_count=4,
        )

        result = engine.performance(target)

        assert result["actual_value"] == Decimal("1400")
        assert result["actual_offer_count"] == 2
        assert result["achievement"] == 50.0
        assert result["offer_count_achievement"] == 50.0

    def test_user_target_uses_the_assignee(self, west, zone_user, south_user, make_offer):
        _created(make_offer(stage=OfferStage.WON, offer_value=Decimal("1000")), _at(2025, 6))
        _created(make_offer(stage=OfferStage.WON, offer_value=Decimal("300"), assigned_to=south_user), _at(2025, 6))
        target = Target.objects.create(
            scope="USER", user=zone_user, period_type="YEARLY", target_period="2025",
            target_value=Decimal("4000"),
        )

        result = TargetPerformanceEngine().performance(target)

        assert result["actual_value"] == Decimal("1000")
        assert result["achievement"] == 25.0
        assert result["offer_count_achievement"] is None

    def test_product_type_narrows_the_actuals(self, west, make_offer):
        _created(make_offer(stage=OfferStage.WON, product_type="SPP", offer_value=Decimal("100")), _at(2025, 5))
        _created(make_offer(stage=OfferStage.WON, product_type="CONTRACT", offer_value=Decimal("900")), _at(2025, 5))
        target = Target.objects.create(
            scope="ZONE", zone=west, period_type="MONTHLY", target_period="2025-05",
            product_type="SPP", target_value=Decimal("100"),
        )

        assert TargetPerformanceEngine().actuals(target) == {"actual_value": Decimal("100"), "actual_offer_count": 1}

    def test_zero_target_value_gives_zero_achievement(self, west, make_offer):
        _created(make_offer(stage=OfferStage.WON), _at(2025, 5))
        target = Target.objects.create(
            scope="ZONE", zone=west, period_type="MONTHLY", target_period="2025-05", target_value=0,
        )
        assert TargetPerformanceEngine().performance(target)["achievement"] == 0.0


@pytest.mark.django_db
class TestDashboard:
    def test_splits_targets_by_scope_and_totals_zones(self, west, south, zone_user, make_offer):
        _created(make_offer(stage=OfferStage.WON, offer_value=Decimal("1500")), _at(2025, 3))
        Target.objects.create(
            scope="ZONE", zone=west, period_type="MONTHLY", target_period="2025-03", target_value=Decimal("2000"),
        )
        Target.objects.create(
            scope="ZONE", zone=south, period_type="MONTHLY", target_period="2025-03", target_value=Decimal("1000"),
        )
        Target.objects.create(
            scope="USER", user=zone_user, period_type="MONTHLY", target_period="2025-03", target_value=Decimal("500"),
        )
        Target.objects.create(
            scope="ZONE", zone=west, period_type="MONTHLY", target_period="2025-04", target_value=Decimal("9000"),
        )

        data = TargetPerformanceEngine().dashboard("2025-03", "MONTHLY")

        assert {row["zone_name"] for row in data["zones"]} == {"WEST", "SOUTH"}
        assert [row["user_name"] for row in data["users"]] == ["Yogesh"]
        assert data["totals"]["target_value"] == Decimal("3000")
        assert data["totals"]["actual_value"] == Decimal("1500")
        assert data["totals"]["achievement"] == 50.0

    def test_bad_period_raises(self, db):
        with pytest.raises(ValueError):
            TargetPerformanceEngine().dashboard("2025-3", "MONTHLY")
