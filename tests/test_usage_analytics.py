"""
Tests for cross-category feature usage analytics.
"""

import pytest
from datetime import datetime

from business_logic.usage_analytics import (
    DrillDown, UsageIndex, build_business_usage, filter_businesses, filter_category,
    format_month_rows, summarize, top_businesses
)
from models.data_models import BusinessUsage, UsageAnalytics, UsageFilterCriteria, UsageRecord


@pytest.fixture
def businesses():
    return [
        BusinessUsage(business_id=1, business_name="Bay Bakery", business_type="Restaurant", usage_count=40,
                      states={"CA"}, cities={"San Francisco"}, years={2023, 2024}, months={1, 2},
                      features={"budget_wizard", "dashboard"}),
        BusinessUsage(business_id=2, business_name="LA Threads", business_type="Retail", usage_count=25,
                      states={"CA"}, cities={"Los Angeles"}, years={2024}, months={3},
                      features={"dashboard"}),
        BusinessUsage(business_id=3, business_name="Brooklyn Cuts", business_type="Salon", usage_count=10,
                      states={"NY"}, cities={"Brooklyn"}, years={2023}, months={2},
                      features={"advisor"}),
        BusinessUsage(business_id=4, business_name="Austin Eats", business_type="Restaurant", usage_count=5,
                      states={"TX"}, cities={"Austin"}, years={2024}, months={1},
                      features={"budget_wizard"}),
    ]


@pytest.fixture
def analytics(businesses):
    return UsageAnalytics(
        by_state=[{'state': 'CA', 'count': 65}, {'state': 'NY', 'count': 10}, {'state': 'TX', 'count': 5}],
        by_city=[{'city': 'San Francisco', 'count': 40}, {'city': 'Los Angeles', 'count': 25}],
        by_business_type=[{'business_type': 'Restaurant', 'count': 45}, {'business_type': 'Retail', 'count': 25}],
        by_month=[{'year': 2024, 'month': 3, 'count': 25}, {'year': 2024, 'month': 1, 'count': 45}],
        top_businesses=[{'business_name': b.business_name, 'count': b.usage_count} for b in reversed(businesses)],
        businesses=businesses
    )


class TestFilterBusinesses:
    """Test AND-across, OR-within filter semantics."""

    def test_empty_criteria_returns_input(self, businesses):
        assert filter_businesses(businesses, UsageFilterCriteria()) is businesses

    def test_or_within_dimension(self, businesses):
        result = filter_businesses(businesses, UsageFilterCriteria(states=["NY", "TX"]))
        assert [b.business_id for b in result] == [3, 4]

    def test_and_across_dimensions(self, businesses):
        criteria = UsageFilterCriteria(states=["CA"], features=["budget_wizard"])
        result = filter_businesses(businesses, criteria)
        assert [b.business_id for b in result] == [1]

    def test_business_type_is_single_valued(self, businesses):
        criteria = UsageFilterCriteria(business_types=["Restaurant"], years=[2024], months=[1])
        result = filter_businesses(businesses, criteria)
        assert [b.business_id for b in result] == [1, 4]

    def test_no_match(self, businesses):
        criteria = UsageFilterCriteria(states=["NY"], business_types=["Retail"])
        assert filter_businesses(businesses, criteria) == []

    @pytest.mark.parametrize("criteria", [
        UsageFilterCriteria(),
        UsageFilterCriteria(states=["CA"]),
        UsageFilterCriteria(states=["CA", "TX"], business_types=["Restaurant"]),
        UsageFilterCriteria(years=[2023], features=["advisor", "dashboard"]),
        UsageFilterCriteria(cities=["Nowhere"]),
        UsageFilterCriteria(months=[2], states=["CA"], features=["dashboard"]),
    ])
    def test_index_matches_direct_filter(self, businesses, criteria):
        index = UsageIndex(businesses)
        assert index.filter(criteria) == filter_businesses(businesses, criteria)


class TestSummaries:
    """Test summary statistics and business usage folding."""

    def test_summarize(self, businesses):
        summary = summarize(businesses[:2])

        assert summary.count == 2
        assert summary.total_usage == 65
        assert summary.average_usage == pytest.approx(32.5)

    def test_summarize_empty(self):
        summary = summarize([])
        assert (summary.count, summary.total_usage, summary.average_usage) == (0, 0, 0.0)

    def test_build_business_usage(self):
        records = [
            UsageRecord(business_id=7, business_name="Zed", business_type="Retail", feature_name="dashboard",
                        timestamp=datetime(2024, 3, 5), state="WA", city="Seattle"),
            UsageRecord(business_id=7, business_name="Zed", business_type="Retail", feature_name="advisor",
                        timestamp=datetime(2023, 11, 2), state="WA", city="Tacoma", count=2),
            UsageRecord(business_id=8, business_name="Amy's", business_type="Salon", feature_name="dashboard",
                        timestamp=datetime(2024, 1, 1), count=1),
        ]

        result = build_business_usage(records)

        assert [b.business_id for b in result] == [7, 8]
        zed = result[0]
        assert zed.usage_count == 3
        assert zed.cities == {"Seattle", "Tacoma"}
        assert zed.years == {2023, 2024}
        assert zed.months == {3, 11}
        assert zed.features == {"dashboard", "advisor"}
        assert result[1].usage_count == 1
        assert result[1].states == set()

    def test_build_business_usage_ties_sorted_by_name(self):
        records = [
            UsageRecord(business_id=7, business_name="Zed", business_type="Retail", feature_name="dashboard",
                        timestamp=datetime(2024, 3, 5), count=3),
            UsageRecord(business_id=8, business_name="Amy's", business_type="Salon", feature_name="dashboard",
                        timestamp=datetime(2024, 1, 1), count=3),
        ]

        assert [b.business_id for b in build_business_usage(records)] == [8, 7]


class TestCategoryViews:
    """Test per-tab rows."""

    def test_filter_category(self, analytics):
        rows = filter_category(analytics.by_state, 'by_state', ["CA", "TX"])
        assert [r['state'] for r in rows] == ["CA", "TX"]

    def test_filter_category_without_selection(self, analytics):
        assert filter_category(analytics.by_state, 'by_state', []) is analytics.by_state

    def test_filter_category_unknown(self, analytics):
        with pytest.raises(ValueError):
            filter_category(analytics.by_state, 'by_planet', ["Mars"])

    def test_top_businesses(self, analytics):
        rows = top_businesses(analytics, 2)
        assert [r['business_name'] for r in rows] == ["Bay Bakery", "LA Threads"]

    def test_top_businesses_invalid_limit(self, analytics):
        with pytest.raises(ValueError):
            top_businesses(analytics, 0)

    def test_format_month_rows(self, analytics):
        rows = format_month_rows(analytics.by_month)
        assert [r['label'] for r in rows] == ["Mar 2024", "Jan 2024"]
        assert 'label' not in analytics.by_month[0]


class TestDrillDown:
    """Test state -> city -> business type -> business navigation."""

    def test_drill_path(self, analytics):
        drill_down = DrillDown(analytics)
        assert drill_down.level == 'state'
        assert drill_down.rows()[0] == {'state': 'CA', 'count': 65}

        cities = drill_down.drill({'state': 'CA', 'count': 65})
        assert drill_down.level == 'city'
        assert [r['city'] for r in cities] == ["San Francisco", "Los Angeles"]

        types = drill_down.drill({'city': 'Los Angeles'})
        assert types == [{'business_type': 'Retail', 'count': 25}]

        names = drill_down.drill(types[0])
        assert drill_down.is_at_leaf
        assert names == [{'business_name': 'LA Threads', 'count': 25}]
        assert drill_down.breadcrumbs == ["CA", "Los Angeles", "Retail"]

    def test_back_to_and_reset(self, analytics):
        drill_down = DrillDown(analytics)
        drill_down.drill({'state': 'CA'})
        drill_down.drill({'city': 'San Francisco'})

        rows = drill_down.back_to(1)
        assert drill_down.breadcrumbs == ["CA"]
        assert drill_down.level == 'city'
        assert len(rows) == 2

        drill_down.reset()
        assert drill_down.breadcrumbs == []

        with pytest.raises(ValueError):
            drill_down.back_to(3)

    def test_drill_requires_level_key(self, analytics):
        with pytest.raises(ValueError):
            DrillDown(analytics).drill({'city': 'Austin'})

    def test_snapshot_rows_without_business_records(self, analytics):
        analytics.businesses = []
        drill_down = DrillDown(analytics)

        assert drill_down.rows() is analytics.by_state
        drill_down.drill({'state': 'CA'})
        assert drill_down.rows() is analytics.by_city

    def test_uses_businesses_built_from_records(self, analytics, businesses):
        analytics.businesses = []
        drill_down = DrillDown(analytics, businesses)

        assert drill_down.rows()[0] == {'state': 'CA', 'count': 65}
        assert drill_down.drill({'state': 'TX'}) == [{'city': 'Austin', 'count': 5}]
