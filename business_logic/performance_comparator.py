"""
Time-normalized ad method performance comparison.

Campaigns run for different lengths of time, so ROI and ROAS are scaled to
a common daily, weekly or monthly rate before ad methods are compared.
"""

import logging
from typing import Dict, List, Optional, Iterable

from models.data_models import (
    AdMethod, AdMethodPerformance, Business, Campaign, NormalizedCampaign, TimeFrame
)
from .roi_calculator import calculate_roas, campaign_revenue, campaign_roi

logger = logging.getLogger(__name__)

DEFAULT_DURATION_DAYS = 30

TIME_FRAME_DAYS = {
    TimeFrame.DAILY: 1,
    TimeFrame.WEEKLY: 7,
    TimeFrame.MONTHLY: 30,
}


def campaign_duration_days(campaign: Campaign) -> int:
    """
    Length of a campaign in days.

    Campaigns without a start or end date count as 30 days. A campaign that
    starts and ends on the same day counts as one day.
    """
    if campaign.start_date is None or campaign.end_date is None:
        return DEFAULT_DURATION_DAYS
    days = abs((campaign.end_date - campaign.start_date).days)
    return max(days, 1)


def normalize_metric(value: float, duration_days: int, time_frame: TimeFrame) -> float:
    """Scale a whole-campaign metric to the given time frame."""
    if time_frame == TimeFrame.ALL:
        return value
    return value / duration_days * TIME_FRAME_DAYS[time_frame]


def normalize_campaign(campaign: Campaign,
                       time_frame: TimeFrame = TimeFrame.MONTHLY,
                       ad_method_name: str = "Unknown",
                       business: Optional[Business] = None) -> NormalizedCampaign:
    """
    Attach duration and time-normalized ROI/ROAS to a campaign.

    Args:
        campaign: Campaign to normalize
        time_frame: Period to express ROI and ROAS over
        ad_method_name: Display name of the campaign's ad method
        business: Owning business, supplies type and location for filtering

    Returns:
        NormalizedCampaign
    """
    duration_days = campaign_duration_days(campaign)
    roi = campaign_roi(campaign)
    roas = calculate_roas(campaign_revenue(campaign), float(campaign.amount_spent))

    return NormalizedCampaign(
        campaign=campaign,
        duration_days=duration_days,
        roi=roi,
        roas=roas,
        normalized_roi=normalize_metric(roi, duration_days, time_frame),
        normalized_roas=normalize_metric(roas, duration_days, time_frame),
        ad_method_name=ad_method_name,
        business_type=business.business_type if business else "",
        city=business.city if business else "",
        state=business.state if business else ""
    )


def normalize_campaigns(campaigns: Iterable[Campaign],
                        time_frame: TimeFrame,
                        ad_methods: List[AdMethod],
                        businesses: Optional[Dict[int, Business]] = None) -> List[NormalizedCampaign]:
    """Normalize a batch of campaigns, resolving ad method names and owners."""
    method_names = {method.id: method.name for method in ad_methods}
    businesses = businesses or {}

    return [
        normalize_campaign(
            campaign,
            time_frame,
            ad_method_name=method_names.get(campaign.ad_method_id, "Unknown"),
            business=businesses.get(campaign.business_id)
        )
        for campaign in campaigns
    ]


def ad_method_performance(normalized: List[NormalizedCampaign],
                          ad_methods: List[AdMethod],
                          include_empty: bool = False) -> List[AdMethodPerformance]:
    """
    Aggregate normalized campaigns per ad method.

    Averages use the normalized metrics; daily, weekly and monthly rates are
    ``sum(metric) / sum(duration_days)`` over the raw metrics, scaled by 1,
    7 and 30.

    Args:
        normalized: Normalized campaigns, typically already filtered
        ad_methods: Ad methods to report on
        include_empty: Keep methods that have no campaigns

    Returns:
        One AdMethodPerformance per ad method, in ad_methods order
    """
    grouped: Dict[int, List[NormalizedCampaign]] = {}
    for item in normalized:
        grouped.setdefault(item.campaign.ad_method_id, []).append(item)

    results = []
    for method in ad_methods:
        items = grouped.get(method.id, [])
        count = len(items)
        if count == 0 and not include_empty:
            continue

        total_days = sum(item.duration_days for item in items)
        daily_roi = sum(item.roi for item in items) / total_days if total_days else 0.0
        daily_roas = sum(item.roas for item in items) / total_days if total_days else 0.0

        results.append(AdMethodPerformance(
            ad_method_id=method.id,
            ad_method_name=method.name,
            average_roi=sum(item.normalized_roi for item in items) / count if count else 0.0,
            average_roas=sum(item.normalized_roas for item in items) / count if count else 0.0,
            total_revenue=sum(campaign_revenue(item.campaign) for item in items),
            total_cost=sum(float(item.campaign.amount_spent) for item in items),
            campaign_count=count,
            daily_roi=daily_roi,
            daily_roas=daily_roas,
            weekly_roi=daily_roi * 7,
            weekly_roas=daily_roas * 7,
            monthly_roi=daily_roi * 30,
            monthly_roas=daily_roas * 30
        ))

    return results


def filter_campaigns(normalized: List[NormalizedCampaign],
                     business_types: Optional[List[str]] = None,
                     ad_method_ids: Optional[List[int]] = None,
                     min_roi: Optional[float] = None,
                     city: Optional[str] = None,
                     state: Optional[str] = None) -> List[NormalizedCampaign]:
    """
    Filter normalized campaigns for the comparison view.

    The minimum ROI is compared with the normalized ROI. Empty or None
    arguments place no constraint.
    """
    filtered = []
    for item in normalized:
        if business_types and item.business_type not in business_types:
            continue
        if ad_method_ids and item.campaign.ad_method_id not in ad_method_ids:
            continue
        if min_roi is not None and item.normalized_roi < min_roi:
            continue
        if city and item.city != city:
            continue
        if state and item.state != state:
            continue
        filtered.append(item)

    logger.info(f"Performance filter kept {len(filtered)} of {len(normalized)} campaigns")
    return filtered


def best_performing_method(performance: List[AdMethodPerformance],
                           metric: str = "roi") -> Optional[AdMethodPerformance]:
    """Ad method with the highest average ROI (or ROAS when metric is "roas")."""
    if not performance:
        return None
    if metric not in ("roi", "roas"):
        raise ValueError(f"Unknown comparison metric: {metric}")
    attribute = 'average_roi' if metric == "roi" else 'average_roas'
    return max(performance, key=lambda p: getattr(p, attribute))
