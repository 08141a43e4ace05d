"""
Core data models for the AdTrack analytics application.

Fetched domain data (Campaign, AdMethod, Business, User, UsageAnalytics) is
produced by the data layer; derived view data (BudgetAllocation,
NormalizedCampaign, AdMethodPerformance, ...) is produced by business logic.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Set, Any


class CampaignStatus(Enum):
    """Lifecycle status of a campaign."""
    ACTIVE = "active"
    COMPLETED = "completed"
    DRAFT = "draft"


class TimeFrame(Enum):
    """Unit period used for time-normalized metrics."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ALL = "all"


@dataclass
class AdMethod:
    """A named advertising channel."""
    id: int
    name: str


@dataclass
class Campaign:
    """An advertising campaign run by a business."""
    id: int
    name: str
    business_id: int
    ad_method_id: int
    amount_spent: Decimal
    start_date: date
    amount_earned: Optional[Decimal] = None  # None means not yet realized
    end_date: Optional[date] = None
    status: CampaignStatus = CampaignStatus.ACTIVE
    description: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == CampaignStatus.ACTIVE


@dataclass
class Business:
    """A business that owns campaigns."""
    id: int
    name: str
    business_type: str
    address: str = ""
    zip_code: str = ""
    city: str = ""
    state: str = ""
    is_verified: bool = False
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None
    owner_phone: Optional[str] = None


@dataclass
class User:
    """Platform user. ``is_admin`` is the only admin flag carried past the API boundary."""
    id: int
    username: str
    email: Optional[str] = None
    is_admin: bool = False
    status: str = "Active"
    business_id: Optional[int] = None


@dataclass
class UsageRecord:
    """A single feature-usage event attributed to a business."""
    business_id: int
    business_name: str
    business_type: str
    feature_name: str
    timestamp: datetime
    state: str = ""
    city: str = ""
    count: int = 1


@dataclass
class BusinessUsage:
    """Per-business usage footprint across every analytics dimension."""
    business_id: int
    business_name: str
    business_type: str
    usage_count: int
    states: Set[str] = field(default_factory=set)
    cities: Set[str] = field(default_factory=set)
    years: Set[int] = field(default_factory=set)
    months: Set[int] = field(default_factory=set)
    features: Set[str] = field(default_factory=set)


@dataclass
class UsageAnalytics:
    """Pre-aggregated feature usage analytics snapshot."""
    by_state: List[Dict[str, Any]] = field(default_factory=list)
    by_city: List[Dict[str, Any]] = field(default_factory=list)
    by_business_type: List[Dict[str, Any]] = field(default_factory=list)
    by_year: List[Dict[str, Any]] = field(default_factory=list)
    by_month: List[Dict[str, Any]] = field(default_factory=list)
    by_feature: List[Dict[str, Any]] = field(default_factory=list)
    top_businesses: List[Dict[str, Any]] = field(default_factory=list)
    businesses: List[BusinessUsage] = field(default_factory=list)


@dataclass
class UsageFilterCriteria:
    """Cross-category filter selections. An empty list places no constraint."""
    states: List[str] = field(default_factory=list)
    cities: List[str] = field(default_factory=list)
    business_types: List[str] = field(default_factory=list)
    years: List[int] = field(default_factory=list)
    months: List[int] = field(default_factory=list)
    features: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not any([self.states, self.cities, self.business_types,
                        self.years, self.months, self.features])


@dataclass
class UsageSummary:
    """Summary statistics over a set of businesses."""
    count: int
    total_usage: int
    average_usage: float


@dataclass
class BudgetChannel:
    """An ad channel eligible for budget allocation."""
    id: int
    name: str
    historical_roi: float


@dataclass
class BudgetAllocation:
    """Suggested spend for one ad method."""
    ad_method_id: int
    ad_method_name: str
    amount: float
    percentage: float
    historical_roi: float
    projected_return: float


@dataclass
class AllocationResult:
    """Result of a budget allocation computation."""
    allocations: List[BudgetAllocation]
    total_budget: float
    total_projected_return: float
    projected_total_roi: float
    strategy_notes: str = ""
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class NormalizedCampaign:
    """Campaign with duration and time-normalized ROI/ROAS."""
    campaign: Campaign
    duration_days: int
    roi: float
    roas: float
    normalized_roi: float
    normalized_roas: float
    ad_method_name: str = "Unknown"
    business_type: str = ""
    city: str = ""
    state: str = ""


@dataclass
class AdMethodPerformance:
    """Aggregated performance for one ad method."""
    ad_method_id: int
    ad_method_name: str
    average_roi: float
    average_roas: float
    total_revenue: float
    total_cost: float
    campaign_count: int
    daily_roi: float
    daily_roas: float
    weekly_roi: float
    weekly_roas: float
    monthly_roi: float
    monthly_roas: float


@dataclass
class BusinessStats:
    """Headline campaign statistics for a business."""
    active_campaigns: int
    average_roi: float
    total_spent: float
    total_earned: float
    total_campaigns: int
