"""
Report export and social sharing.

Builds CSV and JSON downloads for the analytics panels and the budget
wizard, and the share text and links used to post campaign results.
"""

import json
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import pandas as pd

from models.data_models import AllocationResult, UsageAnalytics
from .roi_calculator import MONTH_ABBREVIATIONS
from .usage_analytics import top_businesses

logger = logging.getLogger(__name__)

# Analytics tab -> (CSV header, row keys)
ANALYTICS_TAB_COLUMNS = {
    'by_state': (["State", "Usage Count"], ['state', 'count']),
    'by_city': (["City", "Usage Count"], ['city', 'count']),
    'by_business_type': (["Business Type", "Usage Count"], ['business_type', 'count']),
    'by_year': (["Year", "Usage Count"], ['year', 'count']),
    'by_month': (["Month", "Year", "Usage Count"], ['month', 'year', 'count']),
    'by_feature': (["Feature", "Usage Count"], ['feature_name', 'count']),
    'top_businesses': (["Business Name", "Usage Count"], ['business_name', 'count']),
}

SHARE_HASHTAGS = "#ROITracker #MarketingAnalytics"


def rows_to_csv(rows: List[List[Any]]) -> str:
    """
    Join rows into CSV text.

    The first row is the header. Values are quoted only when they contain
    a comma, a quote or a line break, and rows are separated by CRLF.
    """
    if not rows:
        return ""

    df = pd.DataFrame(rows[1:], columns=rows[0])
    text = df.to_csv(index=False, lineterminator='\r\n')
    if text.endswith('\r\n'):
        text = text[:-2]
    return text


def analytics_csv(analytics: UsageAnalytics, tab: str, top_limit: int = 10,
                  rows: Optional[List[Dict[str, Any]]] = None) -> str:
    """
    Export one feature usage analytics tab as CSV.

    Args:
        analytics: Analytics snapshot
        tab: Tab name such as ``by_state`` or ``top_businesses``
        top_limit: Number of businesses exported from the top businesses tab
        rows: Rows currently displayed (e.g. drill-down rows); defaults to
            the snapshot breakdown for the tab

    Returns:
        CSV text with a header row
    """
    if tab not in ANALYTICS_TAB_COLUMNS:
        raise ValueError(f"Unknown analytics tab: {tab}")

    header, keys = ANALYTICS_TAB_COLUMNS[tab]

    if rows is None:
        if tab == 'top_businesses':
            rows = top_businesses(analytics, top_limit)
        else:
            rows = getattr(analytics, tab)
    elif tab == 'top_businesses':
        rows = rows[:top_limit]

    csv_rows: List[List[Any]] = [header]
    for row in rows:
        values = []
        for key in keys:
            value = row.get(key, "")
            if tab == 'by_month' and key == 'month':
                value = MONTH_ABBREVIATIONS[int(value) - 1]
            values.append(value)
        csv_rows.append(values)

    logger.info(f"Exported {len(csv_rows) - 1} rows from analytics tab {tab}")
    return rows_to_csv(csv_rows)


def export_filename(tab: str, extension: str = "csv", today: Optional[date] = None) -> str:
    """File name such as ``AdTrack_by_state_Analytics_2024-03-01.csv``."""
    today = today or date.today()
    return f"AdTrack_{tab}_Analytics_{today.isoformat()}.{extension.lstrip('.')}"


def allocation_csv(result: AllocationResult) -> str:
    """Export a budget allocation as CSV."""
    rows: List[List[Any]] = [[
        "Ad Method", "Amount", "Percentage", "Historical ROI", "Projected Return"
    ]]
    for allocation in result.allocations:
        rows.append([
            allocation.ad_method_name,
            f"{allocation.amount:.2f}",
            f"{allocation.percentage:.1f}",
            f"{allocation.historical_roi:.1f}",
            f"{allocation.projected_return:.2f}",
        ])
    rows.append(["Total", f"{result.total_budget:.2f}", "100.0",
                 f"{result.projected_total_roi:.1f}", f"{result.total_projected_return:.2f}"])
    return rows_to_csv(rows)


def export_allocation_json(result: AllocationResult, target_roi: Optional[float] = None) -> str:
    """
    Export a budget allocation as JSON.

    Args:
        result: Allocation to export
        target_roi: Target ROI entered in the wizard, if any

    Returns:
        Indented JSON string
    """
    export_data = {
        'export_info': {
            'generated_at': datetime.now().isoformat(),
            'format': 'JSON'
        },
        'total_budget': result.total_budget,
        'total_projected_return': result.total_projected_return,
        'projected_total_roi': result.projected_total_roi,
        'strategy_notes': result.strategy_notes,
        'created_at': result.created_at.isoformat(),
        'allocations': [
            {
                'ad_method_id': a.ad_method_id,
                'ad_method_name': a.ad_method_name,
                'amount': a.amount,
                'percentage': a.percentage,
                'historical_roi': a.historical_roi,
                'projected_return': a.projected_return
            }
            for a in result.allocations
        ]
    }

    if target_roi is not None:
        export_data['target_roi'] = target_roi

    return json.dumps(export_data, indent=2, ensure_ascii=False)


def format_currency(value: float, currency: str = "USD", decimals: int = 0) -> str:
    """Currency text, e.g. "$1,500" or with ``decimals=2`` "$1,500.00"."""
    symbol = "$" if currency == "USD" else f"{currency} "
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.{decimals}f}"


def format_percent(value: float) -> str:
    """Whole percentage text from a 0-100 value, e.g. "95%"."""
    return f"{value:,.0f}%"


def share_text(data: Dict[str, Any]) -> str:
    """
    One-line summary of campaign results for social posts.

    Args:
        data: Optional ``business_name``, ``campaign_name``, ``roi``,
            ``ad_spend`` and ``revenue``

    Returns:
        Share text ending with the AdTrack hashtags
    """
    text = ""

    if data.get('business_name'):
        text += f"{data['business_name']}: "

    if data.get('campaign_name'):
        text += f"\"{data['campaign_name']}\" campaign "
    else:
        text += "Marketing campaign "

    if data.get('roi') is not None:
        text += f"achieved {format_percent(data['roi'])} ROI "

    if data.get('ad_spend') is not None:
        text += f"with {format_currency(data['ad_spend'])} ad spend "

    if data.get('revenue') is not None:
        text += f"and {format_currency(data['revenue'])} revenue "

    return text + SHARE_HASHTAGS


def email_link(data: Dict[str, Any]) -> str:
    """``mailto:`` link with a campaign results summary."""
    subject = (f"{data.get('business_name') or 'Our'} Marketing Campaign Results: "
               f"{data.get('campaign_name') or 'Performance Report'}")

    lines = ["Hi,", "", "I wanted to share some marketing campaign results with you:", "",
             f"Campaign: {data.get('campaign_name') or 'Marketing Campaign'}"]
    if data.get('roi') is not None:
        lines.append(f"ROI: {format_percent(data['roi'])}")
    if data.get('ad_spend') is not None:
        lines.append(f"Ad Spend: {format_currency(data['ad_spend'])}")
    if data.get('revenue') is not None:
        lines.append(f"Revenue: {format_currency(data['revenue'])}")
    if data.get('start_date'):
        end = data.get('end_date') or "Present"
        lines.append(f"Duration: {data['start_date']} to {end}")
    lines += ["", "These results were generated using AdTrack, our marketing analytics platform.",
              "", "Regards,"]

    return f"mailto:?subject={quote(subject, safe='')}&body={quote(chr(10).join(lines), safe='')}"


def share_links(data: Dict[str, Any], page_url: str) -> Dict[str, str]:
    """
    Share intent URLs for each supported network plus email.

    Args:
        data: Campaign summary, see ``share_text``
        page_url: URL of the page being shared

    Returns:
        Mapping of ``twitter``, ``facebook``, ``linkedin`` and ``email`` to URLs
    """
    text = quote(share_text(data), safe='')
    url = quote(page_url, safe='')

    return {
        'twitter': f"https://twitter.com/intent/tweet?text={text}",
        'facebook': f"https://www.facebook.com/sharer/sharer.php?u={url}&quote={text}",
        'linkedin': f"https://www.linkedin.com/sharing/share-offsite/?url={url}&summary={text}",
        'email': email_link(data),
    }
