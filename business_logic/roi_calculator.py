"""
ROI calculations over fetched campaign snapshots.

All functions are pure: they take campaigns already loaded from the
AdTrack API and return derived view data for dashboards and charts.
"""

import logging
from bisect import bisect_right
from typing import Dict, List, Any, Iterable

from models.data_models import Campaign, AdMethod, BusinessStats

logger = logging.getLogger(__name__)

MONTH_ABBREVIATIONS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
                       'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']


def calculate_roi(revenue: float, cost: float) -> float:
    """
    Calculate return on investment as a percentage.

    Args:
        revenue: Revenue generated
        cost: Amount spent

    Returns:
        ``(revenue - cost) / cost * 100``, or 0 when cost is 0
    """
    if cost == 0:
        return 0.0
    return (revenue - cost) / cost * 100


def calculate_roas(revenue: float, cost: float) -> float:
    """Return on ad spend (``revenue / cost``), 0 when cost is 0."""
    if cost == 0:
        return 0.0
    return revenue / cost


def campaign_revenue(campaign: Campaign) -> float:
    return float(campaign.amount_earned) if campaign.amount_earned is not None else 0.0


def campaign_roi(campaign: Campaign) -> float:
    return calculate_roi(campaign_revenue(campaign), float(campaign.amount_spent))


def business_stats(campaigns: List[Campaign]) -> BusinessStats:
    """
    Calculate headline statistics for a business.

    Average ROI only counts campaigns with both spend and earnings recorded.

    Args:
        campaigns: Campaigns owned by one business

    Returns:
        BusinessStats with counts, totals and average ROI
    """
    total_spent = 0.0
    total_earned = 0.0
    roi_values = []

    for campaign in campaigns:
        spent = float(campaign.amount_spent)
        earned = campaign_revenue(campaign)
        total_spent += spent
        total_earned += earned

        if spent > 0 and earned > 0:
            roi_values.append(calculate_roi(earned, spent))

    average_roi = sum(roi_values) / len(roi_values) if roi_values else 0.0

    return BusinessStats(
        active_campaigns=sum(1 for c in campaigns if c.is_active),
        average_roi=average_roi,
        total_spent=total_spent,
        total_earned=total_earned,
        total_campaigns=len(campaigns)
    )


def roi_by_ad_method(campaigns: List[Campaign], ad_methods: List[AdMethod]) -> List[Dict[str, Any]]:
    """
    Group campaigns by ad method and compute pooled ROI per method.

    Args:
        campaigns: Campaigns to group
        ad_methods: Reference list used to name each method

    Returns:
        Rows sorted by ROI descending with ``ad_method_id``, ``ad_method_name``,
        ``roi``, ``total_spent``, ``total_earned`` and ``campaign_count``
    """
    method_names = {method.id: method.name for method in ad_methods}
    grouped: Dict[int, Dict[str, Any]] = {}

    for campaign in campaigns:
        stats = grouped.setdefault(campaign.ad_method_id, {
            'total_spent': 0.0,
            'total_earned': 0.0,
            'campaign_count': 0
        })
        stats['total_spent'] += float(campaign.amount_spent)
        stats['total_earned'] += campaign_revenue(campaign)
        stats['campaign_count'] += 1

    rows = []
    for ad_method_id, stats in grouped.items():
        rows.append({
            'ad_method_id': ad_method_id,
            'ad_method_name': method_names.get(ad_method_id, "Unknown"),
            'roi': calculate_roi(stats['total_earned'], stats['total_spent']),
            **stats
        })

    rows.sort(key=lambda row: row['roi'], reverse=True)
    return rows


def monthly_performance(campaigns: List[Campaign]) -> List[Dict[str, Any]]:
    """
    Group campaigns by the month they started in.

    Args:
        campaigns: Campaigns to group

    Returns:
        Chronological rows with ``month`` (YYYY-MM), ``display_month``,
        ``total_spent``, ``total_earned``, ``roi`` and ``campaign_count``
    """
    monthly: Dict[str, Dict[str, Any]] = {}

    for campaign in sorted(campaigns, key=lambda c: c.start_date):
        start = campaign.start_date
        month_key = f"{start.year}-{start.month:02d}"
        bucket = monthly.setdefault(month_key, {
            'month': month_key,
            'display_month': f"{MONTH_ABBREVIATIONS[start.month - 1]} {start.year}",
            'total_spent': 0.0,
            'total_earned': 0.0,
            'campaign_count': 0
        })
        bucket['total_spent'] += float(campaign.amount_spent)
        bucket['total_earned'] += campaign_revenue(campaign)
        bucket['campaign_count'] += 1

    rows = []
    for month_key in sorted(monthly):
        bucket = monthly[month_key]
        bucket['roi'] = calculate_roi(bucket['total_earned'], bucket['total_spent'])
        rows.append(bucket)

    return rows


def roi_ranking(own_roi: float, competitor_rois: Iterable[float]) -> Dict[str, Any]:
    """
    Rank a business's ROI among anonymized local competitors.

    Args:
        own_roi: The business's average ROI
        competitor_rois: Average ROI of each competitor

    Returns:
        Dictionary with 1-based ``rank``, ``total`` businesses ranked
        (including this one) and ``percentile`` (share of ranked
        businesses at or below this ROI, 0-100)
    """
    others = sorted(competitor_rois)
    total = len(others) + 1
    at_or_below = bisect_right(others, own_roi)
    better = len(others) - at_or_below

    percentile = (at_or_below + 1) / total * 100

    logger.info(f"ROI ranking computed: rank {better + 1} of {total}")
    return {
        'rank': better + 1,
        'total': total,
        'percentile': percentile
    }
