"""Domain models and services."""

from .ads import AdGate, AdProvider, AdSignals, MockAdProvider, PendingAdRequest
from .campaign import CampaignService, SessionView, UnlockOutcome, UnlockStatus
from .economy import LevelRecipe, ProgressionState, Resource, ResourceRegistry, StaticProgression
from .exceptions import InvalidSnapshot, RewardBarError
from .fulfillment import RewardFulfillment, default_fulfillment
from .pool import RewardPool, SelectionHistory
from .rewards import (
    GeneratedReward,
    Rarity,
    RewardCatalog,
    RewardTemplate,
    RewardType,
    SerializedReward,
)
from .session import (
    RewardSession,
    SessionPhase,
    SessionSnapshot,
    SessionStatus,
    SessionTransition,
    SlotState,
)

__all__ = [
    "AdGate",
    "AdProvider",
    "AdSignals",
    "MockAdProvider",
    "PendingAdRequest",
    "CampaignService",
    "SessionView",
    "UnlockOutcome",
    "UnlockStatus",
    "LevelRecipe",
    "ProgressionState",
    "Resource",
    "ResourceRegistry",
    "StaticProgression",
    "InvalidSnapshot",
    "RewardBarError",
    "RewardFulfillment",
    "default_fulfillment",
    "RewardPool",
    "SelectionHistory",
    "GeneratedReward",
    "Rarity",
    "RewardCatalog",
    "RewardTemplate",
    "RewardType",
    "SerializedReward",
    "RewardSession",
    "SessionPhase",
    "SessionSnapshot",
    "SessionStatus",
    "SessionTransition",
    "SlotState",
]
