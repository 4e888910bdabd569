"""RewardBar framework public API."""

from .app import CampaignApp
from .config import RewardBarConfig
from .registry import ResourceRegistryFacade, RewardRegistry
from .scheduler import CampaignTicker

__all__ = [
    "CampaignApp",
    "CampaignTicker",
    "RewardBarConfig",
    "ResourceRegistryFacade",
    "RewardRegistry",
]
