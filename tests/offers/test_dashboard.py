from decimal import Decimal

import pytest

from offers.dashboard import offer_dashboard
from offers.models import Offer, OfferStage, OfferStatus


@pytest.fixture
def funnel(south, make_offer):
    return {
        "open": make_offer(offer_value=Decimal("1000")),
        "won": make_offer(stage=OfferStage.WON, offer_value=Decimal("2000"), po_value=Decimal("1800")),
        "lost": make_offer(status=OfferStatus.LOST, offer_value=Decimal("500")),
        "south": make_offer(zone=south, stage=OfferStage.PROPOSAL_SENT, offer_value=Decimal("4000")),
    }


@pytest.mark.django_db
class TestOfferDashboard:
    def test_empty(self, west):
        data = offer_dashboard(Offer.objects.all())

        assert data["total_offers"] == 0
        assert data["total_value"] == Decimal("0")
        assert data["win_rate"] == 0.0
        assert data["conversion_rate"] == 0.0
        assert data["by_zone"] == []
        assert len(data["by_stage"]) == len(OfferStage)

    def test_totals_pipeline_and_rates(self, funnel):
        data = offer_dashboard(Offer.objects.all())

        assert data["total_offers"] == 4
        assert data["total_value"] == Decimal("7500")
        assert data["average_offer_value"] == Decimal("1875.00")
        assert data["open_offers"] == 2
        assert data["pipeline_value"] == Decimal("5000")
        assert data["won_offers"] == 1
        assert data["won_value"] == Decimal("1800")
        assert data["lost_offers"] == 1
        assert data["win_rate"] == 50.0
        assert data["conversion_rate"] == 25.0

    def test_breakdowns(self, funnel):
        data = offer_dashboard(Offer.objects.all())

        stages = {row["stage"]: row["count"] for row in data["by_stage"]}
        assert stages["INITIAL"] == 2
        assert stages["WON"] == 1
        assert stages["PROPOSAL_SENT"] == 1
        assert stages["ORDER_BOOKED"] == 0
        assert [(row["zone_name"], row["count"], row["value"]) for row in data["by_zone"]] == [
            ("SOUTH", 1, Decimal("4000")),
            ("WEST", 3, Decimal("3500")),
        ]
        assert [row["id"] for row in data["recent_offers"]][0] == funnel["south"].pk

    def test_lost_stage_leaves_the_pipeline(self, make_offer):
        make_offer(stage=OfferStage.LOST)

        data = offer_dashboard(Offer.objects.all())

        assert data["open_offers"] == 0
        assert data["lost_offers"] == 1
