"""
Unit tests for data parsers.
"""

import unittest
import pandas as pd
import tempfile
import os
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO

from data.parsers import (
    CampaignFileParser, PayloadError, parse_business_usage, parse_campaign, parse_usage_analytics,
    parse_usage_record, parse_user
)
from models.data_models import AdMethod, CampaignStatus


class TestPayloadParsers(unittest.TestCase):
    """Test cases for API payload parsing."""

    def test_parse_campaign_camel_case(self):
        campaign = parse_campaign({
            'id': 1, 'name': "Spring", 'businessId': 2, 'adMethodId': 3,
            'amountSpent': "120.50", 'amountEarned': None,
            'startDate': "2024-03-01T00:00:00.000Z", 'endDate': "2024-03-31",
            'isActive': True
        })

        self.assertEqual(campaign.amount_spent, Decimal("120.50"))
        self.assertIsNone(campaign.amount_earned)
        self.assertEqual(campaign.start_date, date(2024, 3, 1))
        self.assertEqual(campaign.end_date, date(2024, 3, 31))
        self.assertEqual(campaign.status, CampaignStatus.ACTIVE)

    def test_parse_campaign_status_field(self):
        campaign = parse_campaign({
            'id': 1, 'name': "Draft", 'business_id': 2, 'ad_method_id': 3,
            'amount_spent': 0, 'start_date': "2024-03-01", 'status': "DRAFT"
        })
        self.assertEqual(campaign.status, CampaignStatus.DRAFT)

    def test_parse_campaign_missing_field(self):
        with self.assertRaises(PayloadError):
            parse_campaign({'id': 1, 'name': "No dates", 'businessId': 2, 'adMethodId': 3})

    def test_parse_campaign_bad_amount(self):
        with self.assertRaises(PayloadError):
            parse_campaign({'id': 1, 'name': "X", 'businessId': 2, 'adMethodId': 3,
                            'amountSpent': "lots", 'startDate': "2024-01-01"})

    def test_parse_user_admin_flags(self):
        self.assertTrue(parse_user({'id': 1, 'username': "a", 'isAdmin': True}).is_admin)
        self.assertTrue(parse_user({'id': 2, 'username': "b", 'is_admin': "true"}).is_admin)
        self.assertFalse(parse_user({'id': 3, 'username': "c"}).is_admin)

    def test_parse_user_conflicting_flags_prefers_is_admin(self):
        with self.assertLogs('data.parsers', level='WARNING'):
            user = parse_user({'id': 4, 'username': "d", 'isAdmin': True, 'is_admin': False})
        self.assertFalse(user.is_admin)

    def test_parse_usage_analytics(self):
        analytics = parse_usage_analytics({
            'byState': [{'state': "CA", 'count': "5"}],
            'byMonth': [{'year': 2024, 'month': 3, 'count': 7}],
            'byFeature': [{'featureName': "budget_wizard", 'count': 2}],
            'topBusinesses': [{'businessName': "Bay Bakery", 'count': 9}],
            'businesses': [{'businessId': 1, 'businessName': "Bay Bakery", 'businessType': "Restaurant",
                            'usageCount': 9, 'states': ["CA"], 'years': ["2024"], 'features': ["dashboard"]}]
        })

        self.assertEqual(analytics.by_state, [{'count': 5, 'state': "CA"}])
        self.assertEqual(analytics.by_feature[0]['feature_name'], "budget_wizard")
        self.assertEqual(analytics.top_businesses[0]['business_name'], "Bay Bakery")
        self.assertEqual(analytics.by_city, [])
        self.assertEqual(analytics.businesses[0].years, {2024})

    def test_parse_business_usage_requires_name(self):
        with self.assertRaises(PayloadError):
            parse_business_usage({'businessId': 1})

    def test_parse_usage_record(self):
        record = parse_usage_record({
            'businessId': 1, 'businessName': "Bay Bakery", 'featureName': "dashboard",
            'timestamp': "2024-03-05T10:00:00Z", 'state': "CA"
        })
        self.assertEqual(record.timestamp.replace(tzinfo=None), datetime(2024, 3, 5, 10, 0))
        self.assertEqual(record.count, 1)


class TestCampaignFileParser(unittest.TestCase):
    """Test cases for CampaignFileParser class."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.csv_file = os.path.join(self.temp_dir, 'campaigns.csv')
        self.xlsx_file = os.path.join(self.temp_dir, 'campaigns.xlsx')
        self.ad_methods = [AdMethod(id=1, name="Social Media"), AdMethod(id=2, name="Radio")]

        self.frame = pd.DataFrame({
            'Name': ["Spring Sale", "Radio Spot", "", "Mystery"],
            'Ad Method': ["social media", "2", "Radio", "Skywriting"],
            'Amount Spent': [250, 100, 50, 10],
            'Amount Earned': [600, None, 20, 5],
            'Start Date': ["2024-03-01", "2024-04-01", "2024-04-01", "2024-05-01"],
            'End Date': ["2024-03-31", None, None, None],
        })

    def tearDown(self):
        """Clean up test fixtures."""
        for path in (self.csv_file, self.xlsx_file):
            if os.path.exists(path):
                os.remove(path)
        os.rmdir(self.temp_dir)

    def test_parse_csv(self):
        self.frame.to_csv(self.csv_file, index=False)
        parser = CampaignFileParser(self.csv_file)

        campaigns, row_errors = parser.parse_campaigns(business_id=5, ad_methods=self.ad_methods)

        self.assertEqual([c.name for c in campaigns], ["Spring Sale", "Radio Spot"])
        self.assertEqual(campaigns[0].ad_method_id, 1)
        self.assertEqual(campaigns[0].status, CampaignStatus.COMPLETED)
        self.assertEqual(campaigns[0].end_date, date(2024, 3, 31))
        self.assertEqual(campaigns[1].ad_method_id, 2)
        self.assertIsNone(campaigns[1].amount_earned)
        self.assertEqual(campaigns[1].status, CampaignStatus.ACTIVE)
        self.assertTrue(all(c.business_id == 5 for c in campaigns))

        self.assertEqual(len(row_errors), 2)
        self.assertTrue(row_errors[0].startswith("Row 4:"))
        self.assertIn("unknown ad method", row_errors[1])

    def test_parse_excel(self):
        self.frame.to_excel(self.xlsx_file, index=False)

        campaigns, _ = CampaignFileParser(self.xlsx_file).parse_campaigns(5, self.ad_methods)

        self.assertEqual(len(campaigns), 2)
        self.assertEqual(campaigns[0].start_date, date(2024, 3, 1))

    def test_uploaded_file_object(self):
        buffer = BytesIO(self.frame.to_csv(index=False).encode('utf-8'))

        campaigns, _ = CampaignFileParser(buffer, filename="upload.csv").parse_campaigns(5, self.ad_methods)

        self.assertEqual(len(campaigns), 2)

    def test_missing_columns(self):
        self.frame.drop(columns=['Start Date']).to_csv(self.csv_file, index=False)

        with self.assertRaises(ValueError) as context:
            CampaignFileParser(self.csv_file).read_frame()
        self.assertIn("start_date", str(context.exception))

    def test_unsupported_format(self):
        buffer = BytesIO(b"{}")
        with self.assertRaises(ValueError):
            CampaignFileParser(buffer, filename="campaigns.json").read_frame()

    def test_file_not_found(self):
        with self.assertRaises(FileNotFoundError):
            CampaignFileParser(os.path.join(self.temp_dir, 'missing.csv'))


if __name__ == '__main__':
    unittest.main()
