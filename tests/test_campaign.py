import asyncio

import pytest

from rewardbar import CampaignApp, RewardBarConfig
from rewardbar.config import SessionConfig
from rewardbar.domain.ads import MockAdProvider
from rewardbar.domain.campaign import UnlockStatus
from rewardbar.domain.economy import Resource
from rewardbar.domain.events import (
    COOLDOWN_STARTED,
    CYCLE_STARTED,
    REVEAL_EXPIRED,
    REWARD_GRANTED_PREFIX,
    SLOT_COLLECTED,
)
from rewardbar.domain.fulfillment import RewardFulfillment
from rewardbar.domain.rewards import Rarity, RewardTemplate, RewardType
from rewardbar.domain.session import SessionPhase, SessionTransition
from rewardbar.storage.memory import InMemoryGrantHistoryStore, InMemorySessionStore
from rewardbar.testing import TestClient
from rewardbar.testing.fixtures import memory_app  # noqa: F401


class FakeClock:
    def __init__(self, now: int = 1000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


class EventLog:
    def __init__(self, app: CampaignApp) -> None:
        self.events: list[tuple[str, dict]] = []
        names = [CYCLE_STARTED, SLOT_COLLECTED, COOLDOWN_STARTED, REVEAL_EXPIRED]
        names += [f"{REWARD_GRANTED_PREFIX}.{reward_type.value}" for reward_type in RewardType]
        for name in names:
            app.event_bus.subscribe(name, self._listener(name))

    def _listener(self, name: str):
        async def listener(payload):
            self.events.append((name, dict(payload)))

        return listener

    def names(self) -> list[str]:
        return [name for name, _ in self.events]


def register_catalog(app: CampaignApp) -> None:
    app.resources.resource(Resource("wood", "Wood", max_stack_size=40))
    (
        app.rewards.template(
            RewardTemplate(template_id="wood_crate", reward_type=RewardType.RESOURCE)
        )
        .template(RewardTemplate(template_id="gems", reward_type=RewardType.CRYSTAL, fixed_amount=5))
        .template(RewardTemplate(template_id="coins", reward_type=RewardType.COIN))
        .template(
            RewardTemplate(
                template_id="jackpot",
                reward_type=RewardType.COIN,
                rarity=Rarity.LEGENDARY,
                resource_coefficient=3.0,
                is_super_reward=True,
            )
        )
    )


def make_app(clock: FakeClock, **kwargs) -> CampaignApp:
    config = RewardBarConfig(
        bot_token="test",
        rng_seed=3,
        session=SessionConfig(slot_count=3, reveal_duration_seconds=60, cooldown_duration_seconds=30),
    )
    app = CampaignApp(config, clock=clock, **kwargs)
    register_catalog(app)
    return app


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def app(clock) -> CampaignApp:
    return make_app(clock)


async def drain() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio()
async def test_open_generates_cycle_and_publishes(app):
    log = EventLog(app)
    view = await app.campaigns.open(1)
    assert view.phase == SessionPhase.REVEALING
    assert view.seconds_remaining == 60
    assert len(view.slots) == 3
    assert view.slots[-1].template_id == "jackpot"
    assert log.names() == [CYCLE_STARTED]
    assert log.events[0][1]["user_id"] == 1

    await app.campaigns.open(1)
    assert log.names() == [CYCLE_STARTED]


@pytest.mark.asyncio()
async def test_unlock_grants_first_slot_only(app):
    log = EventLog(app)
    view = await app.campaigns.open(1)

    assert (await app.campaigns.unlock(1, 1)).status == UnlockStatus.LOCKED
    outcome = await app.campaigns.unlock(1, 0)
    assert outcome.granted
    assert outcome.reward.template_id == view.slots[0].template_id

    again = await app.campaigns.unlock(1, 0)
    assert again.status == UnlockStatus.LOCKED

    granted_events = [name for name in log.names() if name.startswith(REWARD_GRANTED_PREFIX)]
    assert len(granted_events) == 1
    assert SLOT_COLLECTED in log.names()

    history = await app.campaigns.history(1)
    assert [record.slot_index for record in history] == [0]
    assert history[0].template_id == view.slots[0].template_id

    view = await app.campaigns.view(1)
    assert list(view.collected) == [True, False, False]


@pytest.mark.asyncio()
async def test_completing_bar_starts_cooldown(app, clock):
    log = EventLog(app)
    await app.campaigns.open(1)
    clock.now = 1010
    for index in range(3):
        assert (await app.campaigns.unlock(1, index)).granted

    assert COOLDOWN_STARTED in log.names()
    view = await app.campaigns.view(1)
    assert view.phase == SessionPhase.COOLDOWN
    assert view.seconds_remaining == 30
    assert (await app.campaigns.unlock(1, 0)).status == UnlockStatus.COOLDOWN

    clock.now = 1040
    transitions = await app.campaigns.tick(1)
    assert transitions == [SessionTransition.COOLDOWN_FINISHED, SessionTransition.CYCLE_STARTED]
    view = await app.campaigns.view(1)
    assert view.phase == SessionPhase.REVEALING
    assert list(view.collected) == [False, False, False]


@pytest.mark.asyncio()
async def test_declined_ad_leaves_slot_locked(clock):
    app = make_app(clock, ad_provider_factory=lambda user_id: MockAdProvider(grant=False))
    await app.campaigns.open(1)
    outcome = await app.campaigns.unlock(1, 0)
    assert outcome.status == UnlockStatus.DECLINED
    assert outcome.message == "Video not available"
    assert list((await app.campaigns.view(1)).collected) == [False, False, False]
    assert await app.campaigns.history(1) == []


@pytest.mark.asyncio()
async def test_missing_provider_is_declined(clock):
    app = make_app(clock, ad_provider_factory=lambda user_id: None)
    await app.campaigns.open(1)
    assert (await app.campaigns.unlock(1, 0)).status == UnlockStatus.DECLINED


@pytest.mark.asyncio()
async def test_ad_timeout_is_declined(clock):
    app = make_app(
        clock,
        ad_provider_factory=lambda user_id: MockAdProvider(ready=False, auto_load=False),
        ad_timeout=0.01,
    )
    await app.campaigns.open(1)
    assert (await app.campaigns.unlock(1, 0)).status == UnlockStatus.DECLINED


@pytest.mark.asyncio()
async def test_second_unlock_while_ad_pending_is_busy(clock):
    provider = MockAdProvider(ready=False, auto_load=False)
    app = make_app(clock, ad_provider_factory=lambda user_id: provider)
    await app.campaigns.open(1)

    pending = asyncio.create_task(app.campaigns.unlock(1, 0))
    await drain()
    assert (await app.campaigns.unlock(1, 0)).status == UnlockStatus.BUSY

    provider.complete_load()
    outcome = await pending
    assert outcome.granted
    assert provider.load_calls == 1


@pytest.mark.asyncio()
async def test_ad_finishing_after_cycle_restart_is_expired(clock):
    provider = MockAdProvider(ready=False, auto_load=False)
    app = make_app(clock, ad_provider_factory=lambda user_id: provider)
    await app.campaigns.open(1)

    pending = asyncio.create_task(app.campaigns.unlock(1, 0))
    await drain()
    clock.now = 1060
    assert await app.campaigns.tick_all() == {
        1: [SessionTransition.REVEAL_EXPIRED, SessionTransition.CYCLE_STARTED]
    }

    provider.complete_load()
    outcome = await pending
    assert outcome.status == UnlockStatus.EXPIRED
    assert list((await app.campaigns.view(1)).collected) == [False, False, False]


@pytest.mark.asyncio()
async def test_fulfillment_runs_once_per_collected_slot(clock):
    granted = []

    async def record(reward):
        granted.append(reward.template_id)

    fulfillment = RewardFulfillment()
    for reward_type in RewardType:
        fulfillment.register(reward_type, record)

    app = make_app(clock, fulfillment=fulfillment)
    view = await app.campaigns.open(1)
    await app.campaigns.unlock(1, 0)
    await app.campaigns.unlock(1, 0)
    await app.campaigns.unlock(1, 1)
    assert granted == [view.slots[0].template_id, view.slots[1].template_id]


@pytest.mark.asyncio()
async def test_failing_grant_handler_still_collects_and_persists(clock, caplog):
    async def wallet_down(reward):
        raise RuntimeError("wallet down")

    fulfillment = RewardFulfillment()
    for reward_type in RewardType:
        fulfillment.register(reward_type, wallet_down)

    session_store = InMemorySessionStore()
    app = make_app(
        clock,
        fulfillment=fulfillment,
        session_store=session_store,
        history_store=InMemoryGrantHistoryStore(),
    )
    await app.campaigns.open(1)
    outcome = await app.campaigns.unlock(1, 0)

    assert outcome.granted
    assert "Grant handler failed" in caplog.text
    assert list((await app.campaigns.view(1)).collected) == [True, False, False]
    stored = await session_store.load(1)
    assert stored["collected"] == [True, False, False]
    assert [record.slot_index for record in await app.campaigns.history(1)] == [0]


@pytest.mark.asyncio()
async def test_cancelled_unlock_releases_ad_gate(clock):
    provider = MockAdProvider(ready=False, auto_load=False)
    app = make_app(clock, ad_provider_factory=lambda user_id: provider)
    await app.campaigns.open(1)

    pending = asyncio.create_task(app.campaigns.unlock(1, 0))
    await drain()
    pending.cancel()
    with pytest.raises(asyncio.CancelledError):
        await pending

    retry = asyncio.create_task(app.campaigns.unlock(1, 0))
    await drain()
    provider.complete_load()
    outcome = await retry
    assert outcome.granted
    assert provider.load_calls == 2


@pytest.mark.asyncio()
async def test_session_is_restored_from_store(clock):
    session_store = InMemorySessionStore()
    history_store = InMemoryGrantHistoryStore()
    first = make_app(clock, session_store=session_store, history_store=history_store)
    view = await first.campaigns.open(1)
    await first.campaigns.unlock(1, 0)

    clock.now = 1020
    second = make_app(clock, session_store=session_store, history_store=history_store)
    restored = await second.campaigns.open(1)
    assert [slot.template_id for slot in restored.slots] == [
        slot.template_id for slot in view.slots
    ]
    assert [slot.amount for slot in restored.slots] == [slot.amount for slot in view.slots]
    assert list(restored.collected) == [True, False, False]
    assert restored.seconds_remaining == 40
    assert len(await second.campaigns.history(1)) == 1


@pytest.mark.asyncio()
async def test_invalid_stored_snapshot_is_discarded(clock, caplog):
    session_store = InMemorySessionStore()
    await session_store.save(1, {"collected": "broken", "slots": []})
    app = make_app(clock, session_store=session_store, history_store=InMemoryGrantHistoryStore())

    view = await app.campaigns.open(1)
    assert view.phase == SessionPhase.REVEALING
    assert view.cycle == 1
    assert "Discarding stored session" in caplog.text
    stored = await session_store.load(1)
    assert len(stored["slots"]) == 3


@pytest.mark.asyncio()
async def test_reset_forgets_session(app):
    await app.campaigns.open(1)
    await app.campaigns.reset(1)
    assert app.campaigns.active_users == []
    assert await app.session_store.load(1) is None


@pytest.mark.asyncio()
async def test_tick_ignores_unknown_and_closed_users(app, clock):
    assert await app.campaigns.tick(99) == []
    await app.campaigns.open(1)
    await app.campaigns.close(1)
    clock.now = 5000
    assert await app.campaigns.tick_all() == {}


@pytest.mark.asyncio()
async def test_client_records_scenario(app, clock):
    client = TestClient(app.campaigns)
    await client.open(7)
    await client.unlock(7, 0)
    clock.now = 1060
    await client.tick(7)

    log = client.history()
    assert log[0].metadata["phase"] == "revealing"
    assert log[0].metadata["states"] == ["available", "locked", "locked"]
    assert log[1].metadata["status"] == "granted"
    assert log[2].metadata["transitions"] == ["reveal_expired", "cycle_started"]


@pytest.mark.asyncio()
async def test_memory_app_fixture(memory_app):
    register_catalog(memory_app)
    view = await memory_app.campaigns.open(1)
    assert len(view.slots) == memory_app.config.session.slot_count
    assert view.slots[-1].is_super_reward
