"""
Parsers for AdTrack API payloads and campaign import files.

JSON payloads from the backend are converted into the dataclasses in
``models.data_models``. Campaign spreadsheets (CSV or Excel) are read with
pandas for bulk import.
"""

import pandas as pd
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List, Optional, Any, Tuple, Union, BinaryIO

from models.data_models import (
    AdMethod, Business, BusinessUsage, Campaign, CampaignStatus, UsageAnalytics,
    UsageRecord, User
)

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class PayloadError(ValueError):
    """Raised when an API payload is missing required data."""
    pass


def _field(payload: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key, so snake_case and camelCase both parse."""
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return default


def _required(payload: Dict[str, Any], *keys: str) -> Any:
    value = _field(payload, *keys)
    if value is None:
        raise PayloadError(f"Missing required field '{keys[0]}' in payload")
    return value


def parse_decimal(value: Any) -> Optional[Decimal]:
    """Parse a money value; None or blank stays None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise PayloadError(f"Invalid decimal value: {value!r}")


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp such as ``2024-03-01T00:00:00.000Z``."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        raise PayloadError(f"Invalid timestamp: {value!r}")


def parse_date(value: Any) -> Optional[date]:
    parsed = parse_datetime(value)
    return parsed.date() if parsed else None


def parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'y')
    return bool(value)


def parse_ad_method(payload: Dict[str, Any]) -> AdMethod:
    return AdMethod(id=int(_required(payload, 'id')), name=str(_required(payload, 'name')))


def parse_campaign(payload: Dict[str, Any]) -> Campaign:
    """
    Convert a campaign payload into a Campaign.

    ROI in the payload, if any, is ignored; it is always derived from spend
    and earnings. Status comes from ``status`` or else the ``isActive`` flag.
    """
    status_value = _field(payload, 'status')
    if status_value:
        try:
            status = CampaignStatus(str(status_value).lower())
        except ValueError:
            raise PayloadError(f"Unknown campaign status: {status_value!r}")
    else:
        is_active = parse_bool(_field(payload, 'is_active', 'isActive', default=True))
        status = CampaignStatus.ACTIVE if is_active else CampaignStatus.COMPLETED

    return Campaign(
        id=int(_required(payload, 'id')),
        name=str(_required(payload, 'name')),
        business_id=int(_required(payload, 'business_id', 'businessId')),
        ad_method_id=int(_required(payload, 'ad_method_id', 'adMethodId')),
        amount_spent=parse_decimal(_field(payload, 'amount_spent', 'amountSpent', default="0")),
        start_date=parse_date(_required(payload, 'start_date', 'startDate')),
        amount_earned=parse_decimal(_field(payload, 'amount_earned', 'amountEarned')),
        end_date=parse_date(_field(payload, 'end_date', 'endDate')),
        status=status,
        description=_field(payload, 'description')
    )


def parse_business(payload: Dict[str, Any]) -> Business:
    return Business(
        id=int(_required(payload, 'id')),
        name=str(_required(payload, 'name')),
        business_type=str(_field(payload, 'business_type', 'businessType', default="")),
        address=str(_field(payload, 'address', default="")),
        zip_code=str(_field(payload, 'zip_code', 'zipCode', default="")),
        city=str(_field(payload, 'city', default="")),
        state=str(_field(payload, 'state', default="")),
        is_verified=parse_bool(_field(payload, 'is_verified', 'isVerified', default=False)),
        owner_name=_field(payload, 'owner_name', 'ownerName'),
        owner_email=_field(payload, 'owner_email', 'ownerEmail'),
        owner_phone=_field(payload, 'owner_phone', 'ownerPhone')
    )


def parse_user(payload: Dict[str, Any]) -> User:
    """
    Convert a user payload into a User.

    The backend sends the admin flag as ``isAdmin`` or ``is_admin``. Either
    is accepted; when both are present and disagree ``is_admin`` wins.
    """
    camel = payload.get('isAdmin')
    snake = payload.get('is_admin')
    if camel is not None and snake is not None and parse_bool(camel) != parse_bool(snake):
        logger.warning(f"Conflicting admin flags for user {payload.get('id')}, using is_admin")
    admin_flag = snake if snake is not None else camel

    business_id = _field(payload, 'business_id', 'businessId')

    return User(
        id=int(_required(payload, 'id')),
        username=str(_required(payload, 'username')),
        email=_field(payload, 'email'),
        is_admin=parse_bool(admin_flag) if admin_flag is not None else False,
        status=str(_field(payload, 'status', default="Active")),
        business_id=int(business_id) if business_id is not None else None
    )


def parse_top_performers(payload: List[Dict[str, Any]]) -> Tuple[List[Campaign], Dict[int, Business], List[AdMethod]]:
    """
    Split top performer payloads into campaigns and their embedded owners.

    Args:
        payload: Campaigns with optional embedded ``business`` and ``adMethod``

    Returns:
        Tuple of (campaigns, businesses by id, ad methods seen)
    """
    campaigns = []
    businesses: Dict[int, Business] = {}
    ad_methods: Dict[int, AdMethod] = {}

    for item in payload:
        campaign = parse_campaign(item)
        campaigns.append(campaign)

        business = _field(item, 'business')
        if business:
            businesses[campaign.business_id] = parse_business(business)

        ad_method = _field(item, 'ad_method', 'adMethod')
        if ad_method:
            ad_methods[campaign.ad_method_id] = parse_ad_method(ad_method)

    return campaigns, businesses, list(ad_methods.values())


def _breakdown(payload: Dict[str, Any], snake: str, camel: str,
               key_map: Dict[str, Tuple[str, ...]]) -> List[Dict[str, Any]]:
    rows = []
    for item in _field(payload, snake, camel, default=[]):
        row = {'count': int(_field(item, 'count', default=0))}
        for key, wire_keys in key_map.items():
            row[key] = _field(item, *wire_keys)
        rows.append(row)
    return rows


def parse_business_usage(payload: Dict[str, Any]) -> BusinessUsage:
    return BusinessUsage(
        business_id=int(_required(payload, 'business_id', 'businessId')),
        business_name=str(_required(payload, 'business_name', 'businessName')),
        business_type=str(_field(payload, 'business_type', 'businessType', default="")),
        usage_count=int(_field(payload, 'usage_count', 'usageCount', 'count', default=0)),
        states=set(_field(payload, 'states', default=[])),
        cities=set(_field(payload, 'cities', default=[])),
        years={int(y) for y in _field(payload, 'years', default=[])},
        months={int(m) for m in _field(payload, 'months', default=[])},
        features=set(_field(payload, 'features', default=[]))
    )


def parse_usage_analytics(payload: Dict[str, Any]) -> UsageAnalytics:
    """
    Convert the feature usage analytics snapshot.

    Args:
        payload: Snapshot with ``byState``, ``byCity`` ... ``topBusinesses``
            and optionally per-business ``businesses`` records

    Returns:
        UsageAnalytics with snake_case row keys
    """
    return UsageAnalytics(
        by_state=_breakdown(payload, 'by_state', 'byState', {'state': ('state',)}),
        by_city=_breakdown(payload, 'by_city', 'byCity', {'city': ('city',)}),
        by_business_type=_breakdown(payload, 'by_business_type', 'byBusinessType',
                                    {'business_type': ('business_type', 'businessType')}),
        by_year=_breakdown(payload, 'by_year', 'byYear', {'year': ('year',)}),
        by_month=_breakdown(payload, 'by_month', 'byMonth', {'year': ('year',), 'month': ('month',)}),
        by_feature=_breakdown(payload, 'by_feature', 'byFeature',
                              {'feature_name': ('feature_name', 'featureName')}),
        top_businesses=_breakdown(payload, 'top_businesses', 'topBusinesses',
                                  {'business_name': ('business_name', 'businessName')}),
        businesses=[parse_business_usage(b) for b in _field(payload, 'businesses', default=[])]
    )


def parse_usage_record(payload: Dict[str, Any]) -> UsageRecord:
    return UsageRecord(
        business_id=int(_required(payload, 'business_id', 'businessId')),
        business_name=str(_required(payload, 'business_name', 'businessName')),
        business_type=str(_field(payload, 'business_type', 'businessType', default="")),
        feature_name=str(_required(payload, 'feature_name', 'featureName')),
        timestamp=parse_datetime(_required(payload, 'timestamp', 'usedAt')),
        state=str(_field(payload, 'state', default="")),
        city=str(_field(payload, 'city', default="")),
        count=int(_field(payload, 'count', default=1))
    )


class CampaignFileParser:
    """
    Parser for campaign spreadsheets uploaded for bulk import.

    Accepts CSV and Excel files with one campaign per row. Column headers are
    matched case-insensitively; spaces and dashes count as underscores.
    """

    REQUIRED_COLUMNS = ['name', 'ad_method', 'amount_spent', 'start_date']
    OPTIONAL_COLUMNS = ['amount_earned', 'end_date', 'description', 'status']

    def __init__(self, source: Union[str, Path, BinaryIO], filename: Optional[str] = None):
        """
        Initialize the parser with a file path or an uploaded file object.

        Args:
            source: Path to the file, or a binary file-like object
            filename: Name used to detect the format when source is a file object
        """
        self.source = source
        self.filename = filename or getattr(source, 'name', None) or str(source)

        if isinstance(source, (str, Path)) and not Path(source).exists():
            raise FileNotFoundError(f"Campaign file not found: {source}")

    def read_frame(self) -> pd.DataFrame:
        """
        Read the file into a DataFrame with normalized column names.

        Raises:
            ValueError: If the file format is unsupported or columns are missing
        """
        suffix = Path(self.filename).suffix.lower()
        try:
            if suffix == '.csv':
                df = pd.read_csv(self.source)
            elif suffix in ('.xlsx', '.xls'):
                df = pd.read_excel(self.source)
            else:
                raise ValueError(f"Unsupported campaign file format: {suffix or self.filename}")
        except ValueError:
            raise
        except Exception as e:
            logger.error(f"Error reading campaign file {self.filename}: {str(e)}")
            raise ValueError(f"Failed to read campaign file: {str(e)}")

        df.columns = [
            str(column).strip().lower().replace(' ', '_').replace('-', '_')
            for column in df.columns
        ]

        missing = [column for column in self.REQUIRED_COLUMNS if column not in df.columns]
        if missing:
            raise ValueError(f"Campaign file is missing required columns: {', '.join(missing)}")

        return df

    def parse_campaigns(self, business_id: int,
                        ad_methods: List[AdMethod]) -> Tuple[List[Campaign], List[str]]:
        """
        Parse each row into a Campaign.

        Rows that cannot be parsed are skipped and reported.

        Args:
            business_id: Business the campaigns belong to
            ad_methods: Known ad methods; the ``ad_method`` column may hold an id or a name

        Returns:
            Tuple of (campaigns, row error messages)
        """
        df = self.read_frame()
        methods_by_name = {method.name.lower(): method.id for method in ad_methods}
        method_ids = {method.id for method in ad_methods}

        campaigns = []
        row_errors = []

        for idx, row in df.iterrows():
            row_number = idx + 2  # Header is row 1
            try:
                name = row['name']
                if pd.isna(name) or str(name).strip() == '':
                    raise ValueError("campaign name is empty")

                ad_method_id = self._resolve_ad_method(row['ad_method'], methods_by_name, method_ids)

                amount_spent = parse_decimal(self._cell(row, 'amount_spent'))
                if amount_spent is None or amount_spent < 0:
                    raise ValueError("amount spent must be a non-negative number")

                amount_earned = parse_decimal(self._cell(row, 'amount_earned'))
                if amount_earned is not None and amount_earned < 0:
                    raise ValueError("amount earned must be a non-negative number")

                start_date = self._to_date(self._cell(row, 'start_date'))
                if start_date is None:
                    raise ValueError("start date is empty")
                end_date = self._to_date(self._cell(row, 'end_date'))
                if end_date is not None and end_date < start_date:
                    raise ValueError("end date is before start date")

                status_value = self._cell(row, 'status')
                if status_value:
                    status = CampaignStatus(str(status_value).strip().lower())
                else:
                    status = CampaignStatus.ACTIVE if end_date is None else CampaignStatus.COMPLETED

                description = self._cell(row, 'description')

                campaigns.append(Campaign(
                    id=0,  # Assigned by the backend on creation
                    name=str(name).strip(),
                    business_id=business_id,
                    ad_method_id=ad_method_id,
                    amount_spent=amount_spent,
                    start_date=start_date,
                    amount_earned=amount_earned,
                    end_date=end_date,
                    status=status,
                    description=str(description) if description else None
                ))

            except (ValueError, PayloadError) as e:
                row_errors.append(f"Row {row_number}: {str(e)}")
                logger.warning(f"Skipping campaign row {row_number}: {str(e)}")

        logger.info(f"Parsed {len(campaigns)} campaigns from {self.filename} ({len(row_errors)} rows skipped)")
        return campaigns, row_errors

    def _cell(self, row: pd.Series, column: str) -> Any:
        if column not in row.index:
            return None
        value = row[column]
        if pd.isna(value):
            return None
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def _to_date(self, value: Any) -> Optional[date]:
        if value is None:
            return None
        try:
            return pd.to_datetime(value).date()
        except (ValueError, TypeError):
            raise ValueError(f"invalid date {value!r}")

    def _resolve_ad_method(self, value: Any, methods_by_name: Dict[str, int], method_ids: set) -> int:
        if pd.isna(value) or str(value).strip() == '':
            raise ValueError("ad method is empty")

        text = str(value).strip()
        if text.lower() in methods_by_name:
            return methods_by_name[text.lower()]

        try:
            method_id = int(float(text))
        except ValueError:
            raise ValueError(f"unknown ad method {text!r}")

        if method_id not in method_ids:
            raise ValueError(f"unknown ad method id {method_id}")
        return method_id
