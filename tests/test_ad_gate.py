import asyncio

import pytest

from rewardbar.domain.ads import AdGate, MockAdProvider


class Recorder:
    def __init__(self) -> None:
        self.results: list[bool] = []

    def __call__(self, result: bool) -> None:
        self.results.append(result)


class ExplodingProvider(MockAdProvider):
    def is_ready(self) -> bool:
        raise RuntimeError("sdk not initialised")


def test_ready_provider_grants_reward():
    provider = MockAdProvider()
    gate = AdGate(provider)
    recorder = Recorder()

    assert gate.request_reward(recorder)
    assert recorder.results == [True]
    assert provider.show_calls == 1
    assert not gate.busy


def test_not_ready_provider_loads_then_shows():
    provider = MockAdProvider(ready=False)
    gate = AdGate(provider)
    recorder = Recorder()

    assert gate.request_reward(recorder)
    assert provider.load_calls == 1
    assert recorder.results == [True]


def test_second_request_is_rejected_while_pending():
    provider = MockAdProvider(ready=False, auto_load=False)
    gate = AdGate(provider)
    first, second = Recorder(), Recorder()

    assert gate.request_reward(first)
    assert gate.busy
    assert not gate.request_reward(second)
    assert second.results == [False]
    assert first.results == []

    provider.complete_load()
    assert first.results == [True]
    assert second.results == [False]
    assert not gate.busy


def test_load_failure_resolves_false():
    provider = MockAdProvider(ready=False, load_succeeds=False)
    gate = AdGate(provider)
    recorder = Recorder()

    gate.request_reward(recorder)
    assert recorder.results == [False]
    assert provider.show_calls == 0
    assert not gate.busy


def test_dismissed_without_reward_resolves_false_once():
    provider = MockAdProvider(grant=False)
    gate = AdGate(provider)
    recorder = Recorder()

    gate.request_reward(recorder)
    assert recorder.results == [False]


def test_grant_then_dismiss_resolves_once():
    gate = AdGate(MockAdProvider())
    recorder = Recorder()
    gate.request_reward(recorder)
    # late signals from the SDK are ignored
    gate.dismissed()
    gate.reward_granted(True)
    assert recorder.results == [True]


def test_show_exception_is_reported_as_false():
    provider = MockAdProvider(fail_show=True)
    gate = AdGate(provider)
    recorder = Recorder()

    assert not gate.request_reward(recorder)
    assert recorder.results == [False]
    assert not gate.busy


def test_readiness_exception_is_reported_as_false():
    gate = AdGate(ExplodingProvider())
    recorder = Recorder()
    assert not gate.request_reward(recorder)
    assert recorder.results == [False]
    assert not gate.busy


def test_no_provider_rejects_request():
    gate = AdGate()
    recorder = Recorder()
    assert not gate.has_provider
    assert not gate.initialize()
    assert not gate.request_reward(recorder)
    assert recorder.results == [False]


def test_stray_signals_without_request_are_ignored():
    gate = AdGate(MockAdProvider())
    gate.loaded()
    gate.load_failed("no fill")
    gate.reward_granted(True)
    gate.dismissed()
    assert not gate.busy


def test_cancel_resolves_pending_request():
    gate = AdGate(MockAdProvider(ready=False, auto_load=False))
    recorder = Recorder()
    gate.request_reward(recorder)
    gate.cancel()
    assert recorder.results == [False]
    assert not gate.busy


@pytest.mark.asyncio()
async def test_request_reward_async_returns_result():
    gate = AdGate(MockAdProvider())
    assert await gate.request_reward_async(timeout=1.0) is True

    declined = AdGate(MockAdProvider(grant=False))
    assert await declined.request_reward_async(timeout=1.0) is False


@pytest.mark.asyncio()
async def test_request_reward_async_times_out():
    gate = AdGate(MockAdProvider(ready=False, auto_load=False))
    assert await gate.request_reward_async(timeout=0.01) is False
    assert not gate.busy


@pytest.mark.asyncio()
async def test_cancelled_async_wait_releases_gate():
    provider = MockAdProvider(ready=False, auto_load=False)
    gate = AdGate(provider)
    waiter = asyncio.create_task(gate.request_reward_async())
    await asyncio.sleep(0)
    assert gate.busy

    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter
    assert not gate.busy

    recorder = Recorder()
    assert gate.request_reward(recorder)
    assert provider.load_calls == 2
    provider.complete_load()
    assert recorder.results == [True]


def test_load_signal_after_provider_removed_resolves_false():
    gate = AdGate(MockAdProvider(ready=False, auto_load=False))
    recorder = Recorder()
    gate.request_reward(recorder)
    gate._provider = None

    gate.loaded()
    assert recorder.results == [False]
    assert not gate.busy
