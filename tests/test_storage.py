from datetime import datetime, timedelta, timezone

import pytest

from rewardbar import CampaignApp, RewardBarConfig
from rewardbar.config import StorageConfig
from rewardbar.domain.rewards import RewardTemplate, RewardType
from rewardbar.storage import AsyncSQLAlchemyStorage, GrantRecord, InMemorySessionStore


def record(user_id: int, slot_index: int, offset: int) -> GrantRecord:
    return GrantRecord(
        user_id=user_id,
        slot_index=slot_index,
        template_id=f"tpl_{slot_index}",
        resource_id=None,
        amount=10 * slot_index,
        is_super_reward=False,
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=offset),
    )


@pytest.mark.asyncio()
async def test_in_memory_session_store_copies_payloads():
    store = InMemorySessionStore()
    payload = {"collected": [False], "slots": [], "revealDeadline": 10, "cooldownDeadline": 0}
    await store.save(1, payload)
    payload["collected"][0] = True
    loaded = await store.load(1)
    assert loaded["collected"] == [False]
    await store.delete(1)
    assert await store.load(1) is None


@pytest.mark.asyncio()
async def test_sqlalchemy_session_store_round_trip(tmp_path):
    storage = AsyncSQLAlchemyStorage(f"sqlite+aiosqlite:///{(tmp_path / 'sessions.db').as_posix()}")
    await storage.init_models()
    store = storage.session_store()
    try:
        assert await store.load(1) is None
        await store.save(1, {"collected": [True, False], "slots": [], "revealDeadline": 60})
        await store.save(1, {"collected": [True, True], "slots": [], "cooldownDeadline": 90})
        loaded = await store.load(1)
        assert loaded == {"collected": [True, True], "slots": [], "cooldownDeadline": 90}
        await store.delete(1)
        assert await store.load(1) is None
    finally:
        await storage.dispose()


@pytest.mark.asyncio()
async def test_sqlalchemy_grant_history_orders_newest_first(tmp_path):
    storage = AsyncSQLAlchemyStorage(f"sqlite+aiosqlite:///{(tmp_path / 'history.db').as_posix()}")
    await storage.init_models()
    store = storage.grant_history_store()
    try:
        for slot_index in range(3):
            await store.add_record(record(1, slot_index, slot_index))
        await store.add_record(record(2, 0, 10))
        recent = await store.recent_for_user(1, limit=2)
        assert [entry.slot_index for entry in recent] == [2, 1]
        assert recent[0].amount == 20
    finally:
        await storage.dispose()


@pytest.mark.asyncio()
async def test_app_with_sqlalchemy_backend_persists_sessions(tmp_path):
    dsn = f"sqlite+aiosqlite:///{(tmp_path / 'app.db').as_posix()}"
    config = RewardBarConfig(bot_token="test", storage=StorageConfig(backend="sqlalchemy", dsn=dsn))
    app = CampaignApp(config, clock=lambda: 1000)
    app.rewards.template(RewardTemplate(template_id="gems", reward_type=RewardType.CRYSTAL))
    await app.init_backend()
    try:
        view = await app.campaigns.open(1)
        outcome = await app.campaigns.unlock(1, 0)
        assert outcome.granted
        stored = await app.session_store.load(1)
        assert stored["collected"][0] is True
        assert stored["revealDeadline"] == 1000 + config.session.reveal_duration_seconds
        assert len(stored["slots"]) == len(view.slots)
        history = await app.campaigns.history(1)
        assert history[0].template_id == "gems"
    finally:
        await app.shutdown()


def test_unknown_backend_is_rejected():
    config = RewardBarConfig(bot_token="test")
    config.storage.backend = "redis"
    with pytest.raises(ValueError, match="Unsupported storage backend"):
        CampaignApp(config)
