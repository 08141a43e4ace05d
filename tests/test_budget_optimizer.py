"""
Tests for the Smart Budget Wizard allocation logic.
"""

import pytest
from datetime import date
from decimal import Decimal

from business_logic.budget_optimizer import (
    BudgetOptimizer, TargetStatus, default_channel_multiplier, make_multiplier_rule
)
from models.data_models import AdMethod, BudgetChannel, Business, Campaign


@pytest.fixture
def optimizer():
    return BudgetOptimizer(min_allocation_percentage=5.0)


@pytest.fixture
def channels():
    return [
        BudgetChannel(id=1, name="Social Media", historical_roi=120.0),
        BudgetChannel(id=2, name="Local Radio", historical_roi=60.0),
        BudgetChannel(id=3, name="Print", historical_roi=20.0),
        BudgetChannel(id=4, name="Billboards", historical_roi=0.0),
    ]


class TestOptimalAllocation:
    """Test performance-weighted allocation."""

    def test_two_channel_example(self, optimizer):
        """A 100% ROI channel and an untested one split $1000 as 95/5."""
        result = optimizer.compute_optimal_allocation(1000, [
            BudgetChannel(id=1, name="A", historical_roi=100.0),
            BudgetChannel(id=2, name="B", historical_roi=0.0),
        ])

        a, b = result.allocations
        assert a.ad_method_name == "A"
        assert a.percentage == pytest.approx(95.0)
        assert a.amount == pytest.approx(950.0)
        assert a.projected_return == pytest.approx(1900.0)
        assert b.percentage == pytest.approx(5.0)
        assert b.amount == pytest.approx(50.0)
        assert b.projected_return == pytest.approx(50.0)
        assert result.total_projected_return == pytest.approx(1950.0)
        assert result.projected_total_roi == pytest.approx(95.0)

    def test_percentages_sum_to_100_and_amounts_to_budget(self, optimizer, channels):
        result = optimizer.compute_optimal_allocation(2500, channels)

        assert sum(a.percentage for a in result.allocations) == pytest.approx(100.0)
        assert sum(a.amount for a in result.allocations) == pytest.approx(2500.0)
        assert result.total_budget == 2500

    def test_every_channel_gets_the_floor(self, optimizer, channels):
        result = optimizer.compute_optimal_allocation(1000, channels)

        for allocation in result.allocations:
            assert allocation.percentage >= 5.0 - 1e-9

    def test_higher_roi_never_gets_less(self, optimizer, channels):
        result = optimizer.compute_optimal_allocation(1000, channels)
        by_roi = sorted(result.allocations, key=lambda a: a.historical_roi)

        for lower, higher in zip(by_roi, by_roi[1:]):
            assert higher.percentage >= lower.percentage - 1e-9

    def test_sorted_by_amount_descending(self, optimizer, channels):
        result = optimizer.compute_optimal_allocation(1000, channels)
        amounts = [a.amount for a in result.allocations]

        assert amounts == sorted(amounts, reverse=True)
        assert result.allocations[0].ad_method_name == "Social Media"

    def test_floor_capped_when_channels_exceed_capacity(self):
        """With 25 channels a 5% floor cannot hold, so each gets 100/n."""
        optimizer = BudgetOptimizer(min_allocation_percentage=5.0)
        many = [BudgetChannel(id=i, name=f"Channel {i}", historical_roi=0.0) for i in range(25)]

        result = optimizer.compute_optimal_allocation(1000, many)

        for allocation in result.allocations:
            assert allocation.percentage == pytest.approx(4.0)
        assert sum(a.amount for a in result.allocations) == pytest.approx(1000.0)

    def test_negative_roi_treated_as_floor_weight(self, optimizer):
        result = optimizer.compute_optimal_allocation(1000, [
            BudgetChannel(id=1, name="Good", historical_roi=50.0),
            BudgetChannel(id=2, name="Loss", historical_roi=-40.0),
        ])

        loss = next(a for a in result.allocations if a.ad_method_name == "Loss")
        assert loss.percentage == pytest.approx(5.0)
        assert loss.projected_return == pytest.approx(50 * 0.6)

    def test_single_channel_gets_everything(self, optimizer):
        result = optimizer.compute_optimal_allocation(
            800, [BudgetChannel(id=1, name="Only", historical_roi=10.0)]
        )

        assert result.allocations[0].percentage == pytest.approx(100.0)
        assert result.allocations[0].amount == pytest.approx(800.0)

    def test_empty_channels(self, optimizer):
        result = optimizer.compute_optimal_allocation(1000, [])

        assert result.allocations == []
        assert result.total_projected_return == 0.0
        assert result.strategy_notes == "No advertising channels available for allocation."

    @pytest.mark.parametrize("budget", [0, -100, None])
    def test_non_positive_budget_rejected(self, optimizer, channels, budget):
        with pytest.raises(ValueError):
            optimizer.compute_optimal_allocation(budget, channels)

    def test_negative_floor_rejected(self):
        with pytest.raises(ValueError):
            BudgetOptimizer(min_allocation_percentage=-1)

    def test_strategy_notes_name_top_channel(self, optimizer, channels):
        result = optimizer.compute_optimal_allocation(1000, channels)

        assert result.strategy_notes.startswith("Performance-weighted allocation across 4 ad methods.")
        assert "Social Media receives the largest share" in result.strategy_notes
        assert "Billboards" in result.strategy_notes


class TestMultipliers:
    """Test business-type channel multipliers."""

    def test_retail_boosts_social(self):
        retail = Business(id=1, name="Shop", business_type="Retail")
        social = BudgetChannel(id=1, name="Social Media", historical_roi=10.0)
        radio = BudgetChannel(id=2, name="Local Radio", historical_roi=10.0)

        assert default_channel_multiplier(retail, social) == 1.2
        assert default_channel_multiplier(retail, radio) == 1.0

    def test_restaurant_boosts_local(self):
        restaurant = Business(id=1, name="Diner", business_type="Restaurant")
        radio = BudgetChannel(id=2, name="Local Radio", historical_roi=10.0)

        assert default_channel_multiplier(restaurant, radio) == 1.3
        assert default_channel_multiplier(None, radio) == 1.0

    def test_multiplier_shifts_allocation(self):
        channels = [
            BudgetChannel(id=1, name="Social Media", historical_roi=50.0),
            BudgetChannel(id=2, name="Print", historical_roi=50.0),
        ]
        optimizer = BudgetOptimizer()
        result = optimizer.compute_optimal_allocation(
            1000, channels, Business(id=1, name="Shop", business_type="Retail")
        )

        social = next(a for a in result.allocations if a.ad_method_id == 1)
        assert social.percentage == pytest.approx(120 / 2.2)

    def test_custom_rule_table(self):
        rule = make_multiplier_rule([("Salon", "Print", 2.0)])
        salon = Business(id=1, name="Cuts", business_type="Salon")

        assert rule(salon, BudgetChannel(id=1, name="Print Ads", historical_roi=0)) == 2.0
        assert rule(salon, BudgetChannel(id=2, name="Radio", historical_roi=0)) == 1.0


class TestManualAllocation:
    """Test projections for user-chosen amounts."""

    def test_manual_percentages_relative_to_total(self, optimizer, channels):
        result = optimizer.compute_manual_allocation({1: 300, 2: 100}, channels)

        social = next(a for a in result.allocations if a.ad_method_id == 1)
        assert social.percentage == pytest.approx(75.0)
        assert social.projected_return == pytest.approx(300 * 2.2)
        assert result.total_budget == pytest.approx(400)
        assert result.strategy_notes == "Manual allocation across 4 ad methods."

    def test_negative_amount_rejected(self, optimizer, channels):
        with pytest.raises(ValueError):
            optimizer.compute_manual_allocation({1: -5}, channels)

    def test_nothing_allocated(self, optimizer, channels):
        result = optimizer.compute_manual_allocation({}, channels)

        assert all(a.percentage == 0 for a in result.allocations)
        assert result.projected_total_roi == 0.0

    def test_equal_split(self, optimizer, channels):
        split = optimizer.equal_split(1000, channels)

        assert split == {1: 250, 2: 250, 3: 250, 4: 250}
        assert optimizer.equal_split(1000, []) == {}


class TestHistoricalRoiAndTarget:
    """Test channel construction and target comparison."""

    def test_historical_roi_by_method(self, optimizer):
        campaigns = [
            Campaign(id=1, name="A", business_id=1, ad_method_id=1, amount_spent=Decimal("100"),
                     amount_earned=Decimal("300"), start_date=date(2024, 1, 1)),
            Campaign(id=2, name="B", business_id=1, ad_method_id=1, amount_spent=Decimal("100"),
                     amount_earned=Decimal("100"), start_date=date(2024, 2, 1)),
        ]
        methods = [AdMethod(id=1, name="Social"), AdMethod(id=2, name="Print")]

        channels = optimizer.historical_roi_by_method(campaigns, methods)

        assert channels[0].historical_roi == pytest.approx(100.0)
        assert channels[1].historical_roi == 0.0

    @pytest.mark.parametrize("projected,status", [
        (60.0, TargetStatus.EXCEEDS),
        (52.0, TargetStatus.MEETS),
        (50.0, TargetStatus.MEETS),
        (40.0, TargetStatus.BELOW),
    ])
    def test_compare_to_target(self, optimizer, projected, status):
        comparison = optimizer.compare_to_target(projected, 50.0)

        assert comparison.status == status
        assert comparison.difference == pytest.approx(projected - 50.0)
