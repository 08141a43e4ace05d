"""
Cross-category feature usage analytics.

Filters per-business usage records across state, city, business type, year,
month and feature, summarizes the matches, and supports the per-tab views
and drill-down navigation of the feature usage panel.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Any, Optional, Set, Iterable

from models.data_models import (
    BusinessUsage, UsageAnalytics, UsageFilterCriteria, UsageRecord, UsageSummary
)
from .roi_calculator import MONTH_ABBREVIATIONS

logger = logging.getLogger(__name__)

# Criteria attribute -> BusinessUsage attribute
FILTER_DIMENSIONS = {
    'states': 'states',
    'cities': 'cities',
    'business_types': 'business_type',
    'years': 'years',
    'months': 'months',
    'features': 'features',
}

# Analytics tab -> key holding the category value in each breakdown row
CATEGORY_KEYS = {
    'by_state': 'state',
    'by_city': 'city',
    'by_business_type': 'business_type',
    'by_year': 'year',
    'by_month': 'month',
    'by_feature': 'feature_name',
    'top_businesses': 'business_name',
}

TOP_BUSINESS_LIMITS = [10, 25, 50]


def _dimension_values(business: BusinessUsage, attribute: str) -> Set[Any]:
    value = getattr(business, attribute)
    if isinstance(value, set):
        return value
    return {value}


def _matches(business: BusinessUsage, criteria: UsageFilterCriteria) -> bool:
    for criteria_attr, business_attr in FILTER_DIMENSIONS.items():
        selected = getattr(criteria, criteria_attr)
        if not selected:
            continue
        if not _dimension_values(business, business_attr).intersection(selected):
            return False
    return True


def filter_businesses(all_businesses: List[BusinessUsage],
                      criteria: UsageFilterCriteria) -> List[BusinessUsage]:
    """
    Keep businesses matching every non-empty filter dimension.

    Dimensions combine with AND; values selected within one dimension
    combine with OR.

    Args:
        all_businesses: Per-business usage records
        criteria: Current filter selections

    Returns:
        Matching businesses in input order; the input itself when no
        filter is selected
    """
    if criteria.is_empty():
        return all_businesses

    matched = [business for business in all_businesses if _matches(business, criteria)]
    logger.info(f"Cross-category filter matched {len(matched)} of {len(all_businesses)} businesses")
    return matched


class UsageIndex:
    """
    Inverted index from dimension value to business ids.

    Gives the same results as ``filter_businesses`` with set intersections
    instead of a scan per query, for large business lists.
    """

    def __init__(self, businesses: List[BusinessUsage]):
        self.businesses = businesses
        self._index: Dict[str, Dict[Any, Set[int]]] = {
            criteria_attr: defaultdict(set) for criteria_attr in FILTER_DIMENSIONS
        }

        for position, business in enumerate(businesses):
            for criteria_attr, business_attr in FILTER_DIMENSIONS.items():
                for value in _dimension_values(business, business_attr):
                    self._index[criteria_attr][value].add(position)

    def filter(self, criteria: UsageFilterCriteria) -> List[BusinessUsage]:
        """Filter with the same AND/OR semantics as ``filter_businesses``."""
        if criteria.is_empty():
            return self.businesses

        matching: Optional[Set[int]] = None
        for criteria_attr in FILTER_DIMENSIONS:
            selected = getattr(criteria, criteria_attr)
            if not selected:
                continue

            dimension_index = self._index[criteria_attr]
            positions: Set[int] = set()
            for value in selected:
                positions |= dimension_index.get(value, set())

            matching = positions if matching is None else matching & positions
            if not matching:
                return []

        return [self.businesses[i] for i in sorted(matching)]


def summarize(businesses: List[BusinessUsage]) -> UsageSummary:
    """Count, total usage and average usage of a set of businesses."""
    count = len(businesses)
    total_usage = sum(business.usage_count for business in businesses)
    average_usage = total_usage / count if count else 0.0
    return UsageSummary(count=count, total_usage=total_usage, average_usage=average_usage)


def build_business_usage(records: Iterable[UsageRecord]) -> List[BusinessUsage]:
    """
    Fold raw usage events into one footprint per business.

    Args:
        records: Feature usage events

    Returns:
        BusinessUsage list sorted by usage count descending, then name
    """
    by_business: Dict[int, BusinessUsage] = {}

    for record in records:
        usage = by_business.get(record.business_id)
        if usage is None:
            usage = BusinessUsage(
                business_id=record.business_id,
                business_name=record.business_name,
                business_type=record.business_type,
                usage_count=0
            )
            by_business[record.business_id] = usage

        usage.usage_count += record.count
        usage.features.add(record.feature_name)
        usage.years.add(record.timestamp.year)
        usage.months.add(record.timestamp.month)
        if record.state:
            usage.states.add(record.state)
        if record.city:
            usage.cities.add(record.city)

    businesses = list(by_business.values())
    businesses.sort(key=lambda b: (-b.usage_count, b.business_name))
    return businesses


def filter_category(rows: List[Dict[str, Any]], category: str,
                    selected: Iterable[Any]) -> List[Dict[str, Any]]:
    """
    Filter one pre-aggregated breakdown by the values ticked on its tab.

    Args:
        rows: Breakdown rows, e.g. ``analytics.by_state``
        category: Tab name such as ``by_state``
        selected: Values to keep; empty keeps every row

    Returns:
        Filtered rows
    """
    selected = set(selected)
    if not selected:
        return rows

    key = CATEGORY_KEYS.get(category)
    if key is None:
        raise ValueError(f"Unknown analytics category: {category}")

    return [row for row in rows if row.get(key) in selected]


def top_businesses(analytics: UsageAnalytics, limit: int = 10) -> List[Dict[str, Any]]:
    """Top businesses by usage count, at most ``limit`` rows."""
    if limit <= 0:
        raise ValueError(f"Top business limit must be positive, got {limit}")
    ranked = sorted(analytics.top_businesses, key=lambda row: row.get('count', 0), reverse=True)
    return ranked[:limit]


def format_month_rows(by_month: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Add a ``label`` such as "Mar 2024" to each month row."""
    rows = []
    for row in by_month:
        month = int(row['month'])
        rows.append({**row, 'label': f"{MONTH_ABBREVIATIONS[month - 1]} {row['year']}"})
    return rows


class DrillDown:
    """
    State -> city -> business type -> business drill-down navigation.

    Breadcrumbs hold the values chosen at each level. When per-business
    records are available the child rows are computed from the businesses
    matching the breadcrumbs, otherwise the snapshot breakdown for the next
    level is shown.
    """

    LEVELS = ['state', 'city', 'business_type', 'business_name']
    SNAPSHOT_ROWS = {
        'state': 'by_state',
        'city': 'by_city',
        'business_type': 'by_business_type',
        'business_name': 'top_businesses',
    }

    def __init__(self, analytics: UsageAnalytics, businesses: Optional[List[BusinessUsage]] = None):
        self.analytics = analytics
        self.businesses = businesses if businesses is not None else analytics.businesses
        self.breadcrumbs: List[str] = []

    @property
    def level(self) -> str:
        """Dimension currently listed."""
        return self.LEVELS[min(len(self.breadcrumbs), len(self.LEVELS) - 1)]

    @property
    def is_at_leaf(self) -> bool:
        return len(self.breadcrumbs) >= len(self.LEVELS) - 1

    def drill(self, item: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Descend into one row of the current level.

        Args:
            item: Row of the current level, e.g. ``{'state': 'CA', 'count': 5}``

        Returns:
            Rows for the next level
        """
        if self.is_at_leaf:
            return self.rows()

        key = self.level
        if key not in item:
            raise ValueError(f"Drill-down item has no '{key}' value")

        self.breadcrumbs.append(item[key])
        return self.rows()

    def back_to(self, depth: int) -> List[Dict[str, Any]]:
        """Return to the level reached after ``depth`` breadcrumbs."""
        if depth < 0 or depth > len(self.breadcrumbs):
            raise ValueError(f"Invalid breadcrumb depth: {depth}")
        self.breadcrumbs = self.breadcrumbs[:depth]
        return self.rows()

    def reset(self) -> List[Dict[str, Any]]:
        self.breadcrumbs = []
        return self.rows()

    def rows(self) -> List[Dict[str, Any]]:
        """Rows shown at the current level."""
        level = self.level
        if not self.businesses:
            return getattr(self.analytics, self.SNAPSHOT_ROWS[level])

        criteria = UsageFilterCriteria()
        for depth, value in enumerate(self.breadcrumbs):
            if depth == 0:
                criteria.states = [value]
            elif depth == 1:
                criteria.cities = [value]
            elif depth == 2:
                criteria.business_types = [value]

        businesses = filter_businesses(self.businesses, criteria)
        return self._group(businesses, level)

    def _group(self, businesses: List[BusinessUsage], level: str) -> List[Dict[str, Any]]:
        counts: Dict[str, int] = defaultdict(int)
        for business in businesses:
            if level == 'state':
                values = business.states
            elif level == 'city':
                values = business.cities
            elif level == 'business_type':
                values = {business.business_type}
            else:
                values = {business.business_name}

            for value in values:
                counts[value] += business.usage_count

        rows = [{level: value, 'count': count} for value, count in counts.items()]
        rows.sort(key=lambda row: (-row['count'], str(row[level])))
        return rows
