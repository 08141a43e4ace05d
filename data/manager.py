"""
Centralized data access with caching for the AdTrack dashboard panels.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Any, Callable, Tuple
from dataclasses import dataclass

from models.data_models import AdMethod, Business, BusinessUsage, Campaign, UsageAnalytics, User
from config.settings import config_manager
from business_logic.error_handler import error_handler, ErrorInfo
from business_logic.usage_analytics import build_business_usage
from .api_client import AdTrackAPIClient

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@dataclass
class DataCacheEntry:
    """Represents a cached API response with metadata."""
    data: Any
    key: str
    last_updated: datetime
    last_accessed: datetime


@dataclass
class PanelResult:
    """
    Outcome of loading data for one panel.

    Exactly one of ``data`` and ``error`` is meaningful: a failed load
    carries the error and leaves the other panels unaffected.
    """
    data: Any = None
    error: Optional[ErrorInfo] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DataManager:
    """
    Centralized data access and management system.

    Wraps the AdTrack API client with an in-memory cache per endpoint and
    argument set, expiring entries after the configured TTL.
    """

    def __init__(self, client: Optional[AdTrackAPIClient] = None,
                 cache_ttl_minutes: Optional[int] = None):
        """
        Initialize the DataManager.

        Args:
            client: API client (built from config if not provided)
            cache_ttl_minutes: Time-to-live for cached responses in minutes
        """
        if cache_ttl_minutes is None:
            cache_ttl_minutes = config_manager.load_config().cache_ttl_minutes

        self.client = client or AdTrackAPIClient()
        self.cache_ttl = timedelta(minutes=cache_ttl_minutes)
        self._cache: Dict[str, DataCacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def _is_cache_valid(self, cache_entry: DataCacheEntry) -> bool:
        if datetime.now() - cache_entry.last_updated > self.cache_ttl:
            logger.info(f"Cache has expired for: {cache_entry.key}")
            return False
        return True

    def _cached(self, key: str, loader: Callable[[], Any]) -> Any:
        """
        Return cached data for ``key`` or load and cache it.

        Errors from the loader propagate and are not cached.
        """
        entry = self._cache.get(key)
        if entry and self._is_cache_valid(entry):
            entry.last_accessed = datetime.now()
            self._hits += 1
            return entry.data

        self._misses += 1
        data = loader()
        now = datetime.now()
        self._cache[key] = DataCacheEntry(data=data, key=key, last_updated=now, last_accessed=now)
        return data

    def get_ad_methods(self) -> List[AdMethod]:
        return self._cached("ad_methods", self.client.get_ad_methods)

    def get_business_types(self) -> List[str]:
        return self._cached("business_types", self.client.get_business_types)

    def get_business(self, business_id: int) -> Business:
        return self._cached(f"business:{business_id}", lambda: self.client.get_business(business_id))

    def get_business_campaigns(self, business_id: int) -> List[Campaign]:
        return self._cached(f"campaigns:{business_id}",
                            lambda: self.client.get_business_campaigns(business_id))

    def get_businesses(self) -> List[Business]:
        return self._cached("businesses", self.client.get_businesses)

    def get_users(self) -> List[User]:
        return self._cached("users", self.client.get_users)

    def get_top_performers(self, business_type: Optional[str] = None,
                           ad_method_id: Optional[int] = None
                           ) -> Tuple[List[Campaign], Dict[int, Business], List[AdMethod]]:
        key = f"top_performers:{business_type or '*'}:{ad_method_id if ad_method_id is not None else '*'}"
        return self._cached(key, lambda: self.client.get_top_performers(business_type, ad_method_id))

    def get_feature_usage_analytics(self) -> UsageAnalytics:
        return self._cached("feature_usage", self.client.get_feature_usage_analytics)

    def get_business_usage(self, analytics: Optional[UsageAnalytics] = None) -> List[BusinessUsage]:
        """
        Per-business usage footprints for cross-category filtering.

        Uses the businesses carried by the analytics payload when the backend
        includes them, otherwise folds the raw usage records.

        Args:
            analytics: Analytics snapshot already loaded by the caller

        Returns:
            BusinessUsage list sorted by usage count descending
        """
        if analytics is None:
            analytics = self.get_feature_usage_analytics()
        if analytics.businesses:
            return analytics.businesses

        def load():
            records = self.client.get_feature_usage_records()
            logger.info(f"Building business usage from {len(records)} usage records")
            return build_business_usage(records)

        return self._cached("feature_usage_records", load)

    def create_campaigns(self, campaigns: List[Campaign]) -> List[Campaign]:
        """Create campaigns and drop the cached campaign lists they affect."""
        created = [self.client.create_campaign(campaign) for campaign in campaigns]
        for business_id in {campaign.business_id for campaign in campaigns}:
            self.invalidate(f"campaigns:{business_id}")
        logger.info(f"Created {len(created)} campaigns")
        return created

    def update_user_flags(self, user_id: int, is_admin: Optional[bool] = None,
                          status: Optional[str] = None) -> Optional[User]:
        """Update a user and drop the cached user list."""
        user = self.client.update_user_flags(user_id, is_admin=is_admin, status=status)
        self.invalidate("users")
        return user

    def reset_user_password(self, user_id: int, new_password: str) -> None:
        self.client.reset_user_password(user_id, new_password)

    def load_panel(self, loader: Callable[[], Any], context: str) -> PanelResult:
        """
        Run a panel's data loader and capture any failure.

        Args:
            loader: Callable fetching the panel's data
            context: Panel name for error reporting

        Returns:
            PanelResult with either data or error information
        """
        try:
            return PanelResult(data=loader())
        except Exception as e:
            error_info = error_handler.classify_error(e, context)
            error_handler.log_error(error_info, context)
            return PanelResult(error=error_info)

    def invalidate(self, key: str):
        """
        Drop the cached entry for ``key`` and any entries scoped below it.

        ``invalidate("top_performers")`` drops every ``top_performers:...``
        entry while ``invalidate("campaigns:1")`` leaves ``campaigns:10`` alone.
        """
        scoped = f"{key}:"
        for cached_key in [k for k in self._cache if k == key or k.startswith(scoped)]:
            del self._cache[cached_key]

    def clear_cache(self):
        """Clear all cached data."""
        self._cache.clear()
        logger.info("All caches cleared")

    def get_cache_stats(self) -> Dict[str, Any]:
        """
        Get statistics about cached data.

        Returns:
            Dictionary containing cache statistics
        """
        now = datetime.now()
        return {
            'entries': len(self._cache),
            'valid_entries': sum(1 for e in self._cache.values() if now - e.last_updated <= self.cache_ttl),
            'hits': self._hits,
            'misses': self._misses,
            'ttl_minutes': self.cache_ttl.total_seconds() / 60,
            'keys': sorted(self._cache)
        }
