"""
AdTrack backend API client.

Handles all HTTP communication with the AdTrack REST API:
- Bearer token authentication
- Request timeouts
- Retry with backoff for read requests
- Conversion of JSON payloads into data models
"""

import logging
from typing import Dict, Any, List, Optional, Tuple

import requests

from models.data_models import AdMethod, Business, Campaign, UsageAnalytics, UsageRecord, User
from config.settings import config_manager
from business_logic.error_handler import error_handler, RetryConfig
from .parsers import (
    parse_ad_method, parse_business, parse_campaign, parse_top_performers,
    parse_usage_analytics, parse_usage_record, parse_user
)

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base class for AdTrack API failures."""

    def __init__(self, message: str, status_code: Optional[int] = None, endpoint: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


class APIConnectionError(APIError, ConnectionError):
    """The backend could not be reached."""
    pass


class APITimeoutError(APIError, TimeoutError):
    """The backend did not answer within the configured timeout."""
    pass


class AuthenticationError(APIError):
    """401/403 from the backend."""
    pass


class NotFoundError(APIError):
    """404 from the backend."""
    pass


class RateLimitError(APIError):
    """429 from the backend."""
    pass


class ServerError(APIError):
    """5xx from the backend."""
    pass


class InvalidResponseError(APIError):
    """The backend answered with a body that is not the expected JSON."""
    pass


def _error_for_status(status_code: int) -> type:
    if status_code in (401, 403):
        return AuthenticationError
    if status_code == 404:
        return NotFoundError
    if status_code == 429:
        return RateLimitError
    if status_code >= 500:
        return ServerError
    return APIError


class AdTrackAPIClient:
    """Client for the AdTrack REST API."""

    def __init__(self, base_url: Optional[str] = None, api_token: Optional[str] = None,
                 timeout: Optional[float] = None, session: Optional[requests.Session] = None,
                 retry_config: Optional[RetryConfig] = None):
        """
        Initialize the AdTrack API client.

        Args:
            base_url: API base URL (read from config if not provided)
            api_token: Bearer token (read from config if not provided)
            timeout: Request timeout in seconds (read from config if not provided)
            session: Optional requests session, mainly for testing
            retry_config: Retry policy for GET requests
        """
        if base_url is None or timeout is None:
            config = config_manager.load_config()
            base_url = base_url or config.api_base_url
            api_token = api_token or config.api_token
            timeout = timeout or config.request_timeout_seconds

        if not base_url:
            raise ValueError("AdTrack API base URL not configured")

        self.base_url = base_url.rstrip('/')
        self.api_token = api_token
        self.timeout = timeout
        self.session = session or requests.Session()
        self.retry_config = retry_config or RetryConfig(max_attempts=3, base_delay=1.0, max_delay=10.0)

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json"
        }
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    def _request(self, method: str, endpoint: str, params: Optional[Dict] = None,
                 json_data: Optional[Dict] = None) -> Any:
        """
        Make one HTTP request and decode the JSON body.

        Args:
            method: HTTP method
            endpoint: Path below the base URL, e.g. ``/api/ad-methods``
            params: Query parameters
            json_data: JSON body

        Returns:
            Decoded JSON, or None for an empty body

        Raises:
            APIError: Or a subclass describing the failure
        """
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"{method} {endpoint} params={params}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=self._headers(),
                params=params,
                json=json_data,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise APITimeoutError(f"Request to {endpoint} timed out: {str(e)}", endpoint=endpoint)
        except requests.exceptions.ConnectionError as e:
            raise APIConnectionError(f"Could not connect to AdTrack API: {str(e)}", endpoint=endpoint)
        except requests.exceptions.RequestException as e:
            raise APIError(f"Request to {endpoint} failed: {str(e)}", endpoint=endpoint)

        if response.status_code >= 400:
            message = self._error_message(response)
            error_class = _error_for_status(response.status_code)
            raise error_class(
                f"{method} {endpoint} failed with {response.status_code}: {message}",
                status_code=response.status_code,
                endpoint=endpoint
            )

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError(f"Invalid JSON from {endpoint}: {str(e)}", endpoint=endpoint)

    def _error_message(self, response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(body, dict):
            return str(body.get('message') or body.get('error') or body)
        return str(body)

    def _get(self, endpoint: str, params: Optional[Dict] = None) -> Any:
        """GET with retry on timeouts, connection errors, 429 and 5xx."""
        failures: List[APIError] = []

        def call():
            try:
                return self._request("GET", endpoint, params=params)
            except APIError as e:
                failures.append(e)
                raise

        success, result, error_info = error_handler.retry_with_backoff(
            call, self.retry_config, f"GET {endpoint}"
        )

        if not success:
            error_handler.log_error(error_info, "AdTrack API")
            raise failures[-1]

        return result

    def _send(self, method: str, endpoint: str, json_data: Dict[str, Any]) -> Any:
        """Mutating request; never retried."""
        try:
            return self._request(method, endpoint, json_data=json_data)
        except APIError as e:
            error_info = error_handler.classify_error(e, f"{method} {endpoint}")
            error_handler.log_error(error_info, "AdTrack API")
            raise

    def _expect_list(self, payload: Any, endpoint: str) -> List[Dict[str, Any]]:
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise InvalidResponseError(f"Expected a list from {endpoint}", endpoint=endpoint)
        return payload

    def _expect_object(self, payload: Any, endpoint: str) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise InvalidResponseError(f"Expected an object from {endpoint}", endpoint=endpoint)
        return payload

    def get_users(self) -> List[User]:
        endpoint = "/api/admin/users"
        return [parse_user(item) for item in self._expect_list(self._get(endpoint), endpoint)]

    def get_businesses(self) -> List[Business]:
        endpoint = "/api/admin/businesses"
        return [parse_business(item) for item in self._expect_list(self._get(endpoint), endpoint)]

    def get_business(self, business_id: int) -> Business:
        endpoint = f"/api/business/{business_id}"
        return parse_business(self._expect_object(self._get(endpoint), endpoint))

    def get_business_campaigns(self, business_id: int) -> List[Campaign]:
        """Campaigns of one business (the backend includes ROI, which is recomputed)."""
        endpoint = f"/api/business/{business_id}/campaigns/roi"
        return [parse_campaign(item) for item in self._expect_list(self._get(endpoint), endpoint)]

    def get_ad_methods(self) -> List[AdMethod]:
        endpoint = "/api/ad-methods"
        return [parse_ad_method(item) for item in self._expect_list(self._get(endpoint), endpoint)]

    def get_business_types(self) -> List[str]:
        endpoint = "/api/business-types"
        items = self._expect_list(self._get(endpoint), endpoint)
        return [item['name'] if isinstance(item, dict) else str(item) for item in items]

    def get_top_performers(self, business_type: Optional[str] = None,
                           ad_method_id: Optional[int] = None
                           ) -> Tuple[List[Campaign], Dict[int, Business], List[AdMethod]]:
        """
        Top-performing campaigns across anonymized local businesses.

        Args:
            business_type: Restrict to one business type
            ad_method_id: Restrict to one ad method

        Returns:
            Tuple of (campaigns, businesses by id, ad methods seen)
        """
        endpoint = "/api/top-performers"
        params = {}
        if business_type:
            params['businessType'] = business_type
        if ad_method_id is not None:
            params['adMethodId'] = ad_method_id

        payload = self._expect_list(self._get(endpoint, params=params or None), endpoint)
        return parse_top_performers(payload)

    def get_feature_usage_analytics(self) -> UsageAnalytics:
        endpoint = "/api/feature-usage/analytics"
        return parse_usage_analytics(self._expect_object(self._get(endpoint), endpoint))

    def get_feature_usage_records(self) -> List[UsageRecord]:
        """Raw feature usage events attributed to businesses."""
        endpoint = "/api/feature-usage/records"
        return [parse_usage_record(item) for item in self._expect_list(self._get(endpoint), endpoint)]

    def create_campaign(self, campaign: Campaign) -> Campaign:
        """Create a campaign and return it as stored by the backend."""
        body = {
            'businessId': campaign.business_id,
            'name': campaign.name,
            'description': campaign.description,
            'adMethodId': campaign.ad_method_id,
            'amountSpent': str(campaign.amount_spent),
            'amountEarned': str(campaign.amount_earned) if campaign.amount_earned is not None else None,
            'startDate': campaign.start_date.isoformat(),
            'endDate': campaign.end_date.isoformat() if campaign.end_date else None,
            'isActive': campaign.is_active
        }
        endpoint = "/api/campaigns"
        payload = self._send("POST", endpoint, body)
        return parse_campaign(self._expect_object(payload, endpoint))

    def update_user_flags(self, user_id: int, is_admin: Optional[bool] = None,
                          status: Optional[str] = None) -> Optional[User]:
        """
        Change a user's admin flag and/or account status.

        Returns:
            The updated user when the backend echoes it, else None
        """
        if is_admin is None and status is None:
            raise ValueError("Nothing to update: pass is_admin and/or status")

        body: Dict[str, Any] = {}
        if is_admin is not None:
            body['isAdmin'] = is_admin
        if status is not None:
            body['status'] = status

        payload = self._send("PUT", f"/api/admin/users/{user_id}", body)
        logger.info(f"Updated flags for user {user_id}: {sorted(body)}")
        return parse_user(payload) if isinstance(payload, dict) and 'id' in payload else None

    def reset_user_password(self, user_id: int, new_password: str) -> None:
        if not new_password:
            raise ValueError("New password must not be empty")
        self._send("POST", f"/api/admin/users/{user_id}/reset-password", {'password': new_password})
        logger.info(f"Password reset for user {user_id}")
