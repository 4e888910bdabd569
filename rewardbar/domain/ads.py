"""Rewarded-ad coordination: one pending request at a time, faults become ``False``."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

ResultCallback = Callable[[bool], None]


class AdSignals(Protocol):
    """Signals an ad provider emits while loading and showing an ad."""

    def loaded(self) -> None: ...

    def load_failed(self, reason: str) -> None: ...

    def reward_granted(self, rewarded: bool) -> None: ...

    def dismissed(self) -> None: ...


class AdProvider(Protocol):
    """Adapter around a rewarded-ad SDK."""

    def bind(self, signals: AdSignals) -> None: ...

    def initialize(self) -> None: ...

    def request_load(self) -> None: ...

    def is_ready(self) -> bool: ...

    def show(self) -> bool: ...


@dataclass(slots=True)
class PendingAdRequest:
    on_result: ResultCallback
    waiting_for_load: bool = False
    resolved: bool = False


def _ignore_result(_: bool) -> None:
    return None


class AdGate:
    """Serialize rewarded-ad requests against a single pending slot.

    A second request while one is pending is rejected immediately rather than
    queued. Exactly one of reward granted, dismissed, load failed or a provider
    exception resolves the pending request, after which the gate is idle again.
    """

    def __init__(self, provider: AdProvider | None = None) -> None:
        self._provider = provider
        self._pending: PendingAdRequest | None = None
        if provider is not None:
            provider.bind(self)

    @property
    def busy(self) -> bool:
        return self._pending is not None

    @property
    def has_provider(self) -> bool:
        return self._provider is not None

    def initialize(self) -> bool:
        if self._provider is None:
            return False
        try:
            self._provider.initialize()
        except Exception:
            logger.exception("Ad provider failed to initialize.")
            return False
        return True

    def request_reward(self, on_result: ResultCallback | None = None) -> bool:
        """Start an ad flow; return False when the request was not started."""
        callback = on_result or _ignore_result
        if self._pending is not None:
            logger.info("Rewarded ad requested while another one is pending.")
            callback(False)
            return False
        if self._provider is None:
            logger.warning("Rewarded ad requested but no ad provider is configured.")
            callback(False)
            return False

        pending = PendingAdRequest(on_result=callback)
        self._pending = pending

        try:
            ready = self._provider.is_ready()
        except Exception:
            logger.exception("Ad provider failed to report readiness.")
            self._resolve(pending, False)
            return False

        if ready:
            return self._show(pending)

        pending.waiting_for_load = True
        try:
            self._provider.request_load()
        except Exception:
            logger.exception("Ad provider failed to request a load.")
            self._resolve(pending, False)
            return False
        return True

    async def request_reward_async(self, *, timeout: float | None = None) -> bool:
        """Await the outcome of a rewarded ad; a rejected request yields False."""
        loop = asyncio.get_running_loop()
        future: asyncio.Future[bool] = loop.create_future()

        def on_result(result: bool) -> None:
            if not future.done():
                future.set_result(result)

        self.request_reward(on_result)
        try:
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            logger.warning("Rewarded ad did not resolve within %.1f s.", timeout)
            self._cancel_request(on_result)
            return False
        except asyncio.CancelledError:
            logger.info("Rewarded ad wait was cancelled; releasing the pending request.")
            self._cancel_request(on_result)
            raise

    def cancel(self) -> None:
        """Resolve the pending request, if any, as a failure."""
        if self._pending is not None:
            self._resolve(self._pending, False)

    def _cancel_request(self, on_result: ResultCallback) -> None:
        # Only release the slot if it still belongs to this caller.
        pending = self._pending
        if pending is not None and pending.on_result is on_result:
            self._resolve(pending, False)

    # Signals emitted by the provider.

    def loaded(self) -> None:
        pending = self._pending
        if pending is None or not pending.waiting_for_load:
            logger.debug("Ignoring ad loaded signal with no request waiting for it.")
            return
        pending.waiting_for_load = False
        self._show(pending)

    def load_failed(self, reason: str) -> None:
        if self._pending is None:
            return
        logger.warning("Rewarded ad failed to load: %s", reason)
        self._resolve(self._pending, False)

    def reward_granted(self, rewarded: bool) -> None:
        if self._pending is None:
            return
        self._resolve(self._pending, bool(rewarded))

    def dismissed(self) -> None:
        if self._pending is None:
            return
        self._resolve(self._pending, False)

    def _show(self, pending: PendingAdRequest) -> bool:
        if self._provider is None:
            self._resolve(pending, False)
            return False
        try:
            shown = self._provider.show()
        except Exception:
            logger.exception("Ad provider raised while showing a rewarded ad.")
            shown = False
        if not shown and not pending.resolved:
            self._resolve(pending, False)
            return False
        return True

    def _resolve(self, pending: PendingAdRequest, result: bool) -> None:
        if pending.resolved:
            return
        pending.resolved = True
        if self._pending is pending:
            self._pending = None
        pending.on_result(result)


class MockAdProvider:
    """Ad provider that is instantly ready and simulates a successful watch."""

    def __init__(
        self,
        *,
        ready: bool = True,
        load_succeeds: bool = True,
        grant: bool = True,
        auto_load: bool = True,
        fail_show: bool = False,
    ) -> None:
        self.ready = ready
        self.load_succeeds = load_succeeds
        self.grant = grant
        self.auto_load = auto_load
        self.fail_show = fail_show
        self.load_calls = 0
        self.show_calls = 0
        self._signals: AdSignals | None = None

    def bind(self, signals: AdSignals) -> None:
        self._signals = signals

    def initialize(self) -> None:
        logger.info("Mock ad provider initialized.")

    def request_load(self) -> None:
        self.load_calls += 1
        if self.auto_load:
            self.complete_load()

    def complete_load(self) -> None:
        """Finish an outstanding load with the configured outcome."""
        if self._signals is None:
            return
        if self.load_succeeds:
            self.ready = True
            self._signals.loaded()
        else:
            self._signals.load_failed("no fill")

    def is_ready(self) -> bool:
        return self.ready

    def show(self) -> bool:
        if self.fail_show:
            raise RuntimeError("mock ad provider crashed")
        if not self.ready:
            return False
        self.show_calls += 1
        if self._signals is not None:
            self._signals.reward_granted(self.grant)
            self._signals.dismissed()
        return True
