"""
Tests for CSV/JSON export and share links.
"""

import csv
import io
import json
import pandas as pd
import pytest
from datetime import date
from urllib.parse import unquote

from business_logic.report_exporter import (
    allocation_csv, analytics_csv, email_link, export_allocation_json, export_filename,
    format_currency, format_percent, rows_to_csv, share_links, share_text
)
from models.data_models import AllocationResult, BudgetAllocation, UsageAnalytics


@pytest.fixture
def allocation():
    return AllocationResult(
        allocations=[
            BudgetAllocation(ad_method_id=1, ad_method_name="A", amount=950.0, percentage=95.0,
                             historical_roi=100.0, projected_return=1900.0),
            BudgetAllocation(ad_method_id=2, ad_method_name="B", amount=50.0, percentage=5.0,
                             historical_roi=0.0, projected_return=50.0),
        ],
        total_budget=1000.0,
        total_projected_return=1950.0,
        projected_total_roi=95.0,
        strategy_notes="Performance-weighted allocation across 2 ad methods."
    )


@pytest.fixture
def campaign_data():
    return {
        'business_name': "Bay Bakery",
        'campaign_name': "Spring Sale",
        'roi': 150.0,
        'ad_spend': 1500.0,
        'revenue': 3750.0,
        'start_date': "2024-03-01",
        'end_date': None,
    }


class TestCsvExport:
    """Test CSV generation."""

    def test_quotes_values_with_commas(self):
        csv_text = rows_to_csv([["State", "Usage Count"], ["CA", 5], ["NY, Metro", 2]])
        assert csv_text == 'State,Usage Count\r\nCA,5\r\n"NY, Metro",2'

    def test_doubles_embedded_quotes(self):
        assert rows_to_csv([['Say "hi", Bob']]) == '"Say ""hi"", Bob"'

    def test_quotes_values_with_line_breaks(self):
        csv_text = rows_to_csv([["Business Name", "Usage Count"], ["Joe's\nDiner", 3]])

        assert csv_text == 'Business Name,Usage Count\r\n"Joe\'s\nDiner",3'
        assert list(csv.reader(io.StringIO(csv_text))) == [
            ["Business Name", "Usage Count"], ["Joe's\nDiner", "3"]
        ]

    def test_quotes_values_with_quotes(self):
        csv_text = rows_to_csv([["Business Name", "Usage Count"], ['"Best" Tacos', 3]])

        assert csv_text == 'Business Name,Usage Count\r\n"""Best"" Tacos",3'
        assert pd.read_csv(io.StringIO(csv_text))['Business Name'].tolist() == ['"Best" Tacos']

    def test_empty_rows(self):
        assert rows_to_csv([]) == ""

    def test_analytics_state_tab(self):
        analytics = UsageAnalytics(by_state=[{'state': 'CA', 'count': 5}, {'state': 'NY, Metro', 'count': 2}])
        assert analytics_csv(analytics, 'by_state') == 'State,Usage Count\r\nCA,5\r\n"NY, Metro",2'

    def test_analytics_month_tab_uses_abbreviations(self):
        analytics = UsageAnalytics(by_month=[{'year': 2024, 'month': 3, 'count': 7}])
        assert analytics_csv(analytics, 'by_month') == 'Month,Year,Usage Count\r\nMar,2024,7'

    def test_analytics_top_businesses_limit(self):
        analytics = UsageAnalytics(top_businesses=[
            {'business_name': f"Business {i}", 'count': i} for i in range(30)
        ])

        lines = analytics_csv(analytics, 'top_businesses', top_limit=25).split('\r\n')

        assert len(lines) == 26
        assert lines[1] == "Business 29,29"

    def test_analytics_uses_displayed_rows(self):
        analytics = UsageAnalytics(by_city=[{'city': 'Austin', 'count': 1}, {'city': 'Dallas', 'count': 2}])
        csv_text = analytics_csv(analytics, 'by_city', rows=[{'city': 'Dallas', 'count': 2}])
        assert csv_text == 'City,Usage Count\r\nDallas,2'

    def test_analytics_unknown_tab(self):
        with pytest.raises(ValueError):
            analytics_csv(UsageAnalytics(), 'by_galaxy')

    def test_export_filename(self):
        assert export_filename('by_state', today=date(2024, 3, 1)) == "AdTrack_by_state_Analytics_2024-03-01.csv"
        assert export_filename('budget', '.json', date(2024, 3, 1)).endswith(".json")

    def test_allocation_csv(self, allocation):
        lines = allocation_csv(allocation).split('\r\n')

        assert lines[0] == "Ad Method,Amount,Percentage,Historical ROI,Projected Return"
        assert lines[1] == "A,950.00,95.0,100.0,1900.00"
        assert lines[-1] == "Total,1000.00,100.0,95.0,1950.00"


class TestJsonExport:
    """Test JSON export of allocations."""

    def test_export_allocation_json(self, allocation):
        data = json.loads(export_allocation_json(allocation, target_roi=50.0))

        assert data['total_budget'] == 1000.0
        assert data['projected_total_roi'] == 95.0
        assert data['target_roi'] == 50.0
        assert [a['ad_method_name'] for a in data['allocations']] == ["A", "B"]
        assert 'generated_at' in data['export_info']

    def test_target_omitted_when_not_set(self, allocation):
        assert 'target_roi' not in json.loads(export_allocation_json(allocation))


class TestSharing:
    """Test share text and links."""

    def test_formatting(self):
        assert format_currency(1500) == "$1,500"
        assert format_currency(-20) == "-$20"
        assert format_currency(1500, decimals=2) == "$1,500.00"
        assert format_currency(20, "EUR") == "EUR 20"
        assert format_percent(95.4) == "95%"

    def test_share_text(self, campaign_data):
        assert share_text(campaign_data) == (
            'Bay Bakery: "Spring Sale" campaign achieved 150% ROI with $1,500 ad spend '
            'and $3,750 revenue #ROITracker #MarketingAnalytics'
        )

    def test_share_text_minimal(self):
        assert share_text({}) == "Marketing campaign #ROITracker #MarketingAnalytics"

    def test_share_links(self, campaign_data):
        links = share_links(campaign_data, "https://adtrack.example.com/campaigns/1")

        assert set(links) == {'twitter', 'facebook', 'linkedin', 'email'}
        assert links['twitter'].startswith("https://twitter.com/intent/tweet?text=")
        assert unquote(links['twitter'].split("text=")[1]) == share_text(campaign_data)
        assert "u=https%3A%2F%2Fadtrack.example.com%2Fcampaigns%2F1" in links['facebook']

    def test_email_link(self, campaign_data):
        link = unquote(email_link(campaign_data))

        assert link.startswith("mailto:?subject=Bay Bakery Marketing Campaign Results: Spring Sale")
        assert "ROI: 150%" in link
        assert "Duration: 2024-03-01 to Present" in link
