# Data layer for AdTrack analytics

from .parsers import CampaignFileParser
from .api_client import AdTrackAPIClient, APIError
from .manager import DataManager, PanelResult

__all__ = ['CampaignFileParser', 'AdTrackAPIClient', 'APIError', 'DataManager', 'PanelResult']
