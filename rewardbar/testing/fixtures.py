"""Pytest fixtures for RewardBar."""

from __future__ import annotations

import pytest

from ..app import CampaignApp
from ..config import RewardBarConfig


@pytest.fixture()
def memory_app() -> CampaignApp:
    config = RewardBarConfig(bot_token="test", rng_seed=7)
    return CampaignApp(config)


def app_fixture(bot_token: str = "test", **kwargs) -> CampaignApp:
    """Helper for ad-hoc tests where pytest is not available."""
    app_kwargs = {
        key: kwargs.pop(key)
        for key in ("clock", "ad_provider_factory", "progression", "rng", "ad_timeout")
        if key in kwargs
    }
    config = RewardBarConfig(bot_token=bot_token, **kwargs)
    return CampaignApp(config, **app_kwargs)
