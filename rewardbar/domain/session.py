"""Reveal / collect / cooldown state machine of a progress bar campaign."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Sequence

from .economy import ResourceRegistry
from .exceptions import InvalidSnapshot
from .pool import RewardPool
from .rewards import GeneratedReward, RewardCatalog, SerializedReward
from ..config import SessionConfig

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def unix_now() -> int:
    return int(time.time())


class SessionPhase(str, Enum):
    UNINITIALIZED = "uninitialized"
    REVEALING = "revealing"
    COOLDOWN = "cooldown"


class SlotState(str, Enum):
    LOCKED = "locked"
    AVAILABLE = "available"
    COLLECTED = "collected"


class SessionTransition(str, Enum):
    CYCLE_STARTED = "cycle_started"
    REVEAL_EXPIRED = "reveal_expired"
    COOLDOWN_STARTED = "cooldown_started"
    COOLDOWN_FINISHED = "cooldown_finished"


@dataclass(frozen=True, slots=True)
class SessionStatus:
    phase: SessionPhase
    seconds_remaining: int


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Durable form of a session: flags, slot identifiers and deadlines."""

    collected: tuple[bool, ...]
    slots: tuple[SerializedReward, ...]
    reveal_deadline: int = 0
    cooldown_deadline: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "collected": list(self.collected),
            "slots": [slot.to_dict() for slot in self.slots],
            "cooldownDeadline": self.cooldown_deadline,
            "revealDeadline": self.reveal_deadline,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SessionSnapshot":
        if not isinstance(data, Mapping):
            raise InvalidSnapshot("Session snapshot must be an object")
        collected = data.get("collected", [])
        slots = data.get("slots", [])
        if not isinstance(collected, list) or not isinstance(slots, list):
            raise InvalidSnapshot("'collected' and 'slots' must be arrays")
        if not all(isinstance(entry, Mapping) for entry in slots):
            raise InvalidSnapshot("Every slot must be an object")
        if not all(isinstance(flag, bool) for flag in collected):
            raise InvalidSnapshot("Every 'collected' flag must be a boolean")
        try:
            return cls(
                collected=tuple(collected),
                slots=tuple(SerializedReward.from_dict(entry) for entry in slots),
                reveal_deadline=int(data.get("revealDeadline", 0) or 0),
                cooldown_deadline=int(data.get("cooldownDeadline", 0) or 0),
            )
        except (TypeError, ValueError) as exc:
            raise InvalidSnapshot(f"Malformed session snapshot: {exc}") from exc


class RewardSession:
    """Own the lifecycle of one progress bar: slots, collected flags and deadlines.

    Time never advances on its own. An external scheduler calls :meth:`tick`
    at a fixed cadence; every operation also accepts an explicit ``now`` in
    unix seconds so callers and tests control the clock.
    """

    def __init__(
        self,
        pool: RewardPool,
        config: SessionConfig | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._pool = pool
        self._config = config or SessionConfig()
        self._clock = clock or unix_now
        self._slots: list[GeneratedReward] | None = None
        self._collected: list[bool] = []
        self._reveal_deadline = 0
        self._cooldown_deadline = 0
        self._phase = SessionPhase.UNINITIALIZED
        self._is_open = False
        self._cycle = 0

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def cycle(self) -> int:
        """Counter bumped whenever a fresh set of slots is generated."""
        return self._cycle

    @property
    def slots(self) -> Sequence[GeneratedReward]:
        return tuple(self._slots or ())

    @property
    def collected(self) -> Sequence[bool]:
        return tuple(self._collected)

    @property
    def reveal_deadline(self) -> int:
        return self._reveal_deadline

    @property
    def cooldown_deadline(self) -> int:
        return self._cooldown_deadline

    def open(self, now: int | None = None) -> SessionStatus:
        now = self._now(now)
        self._is_open = True

        if now < self._cooldown_deadline:
            self._phase = SessionPhase.COOLDOWN
            return SessionStatus(self._phase, self._cooldown_deadline - now)

        if self._slots is None or now >= self._reveal_deadline:
            if not self._start_cycle(now):
                return SessionStatus(self._phase, 0)

        self._phase = SessionPhase.REVEALING
        return SessionStatus(self._phase, max(0, self._reveal_deadline - now))

    def close(self) -> None:
        self._is_open = False

    def tick(self, now: int | None = None) -> list[SessionTransition]:
        if not self._is_open:
            return []
        now = self._now(now)
        transitions: list[SessionTransition] = []

        if self._phase == SessionPhase.REVEALING and now >= self._reveal_deadline:
            logger.info("Reveal window expired with %s/%s slots collected; restarting.",
                        sum(self._collected), len(self._collected))
            transitions.append(SessionTransition.REVEAL_EXPIRED)
        elif self._phase == SessionPhase.COOLDOWN and now >= self._cooldown_deadline:
            transitions.append(SessionTransition.COOLDOWN_FINISHED)
        else:
            return transitions

        if self._start_cycle(now):
            self._phase = SessionPhase.REVEALING
            transitions.append(SessionTransition.CYCLE_STARTED)
        return transitions

    def seconds_remaining(self, now: int | None = None) -> int:
        now = self._now(now)
        if self._phase == SessionPhase.REVEALING:
            return max(0, self._reveal_deadline - now)
        if self._phase == SessionPhase.COOLDOWN:
            return max(0, self._cooldown_deadline - now)
        return 0

    def first_uncollected_index(self) -> int:
        for index, flag in enumerate(self._collected):
            if not flag:
                return index
        return -1

    def all_collected(self) -> bool:
        return bool(self._collected) and all(self._collected)

    def slot_states(self) -> list[SlotState]:
        available = self.first_uncollected_index()
        states: list[SlotState] = []
        for index, flag in enumerate(self._collected):
            if flag:
                states.append(SlotState.COLLECTED)
            elif index == available and self._phase == SessionPhase.REVEALING:
                states.append(SlotState.AVAILABLE)
            else:
                states.append(SlotState.LOCKED)
        return states

    def request_unlock(self, slot_index: int) -> bool:
        """Slots unlock strictly in order; only the first uncollected one is accepted."""
        if self._phase != SessionPhase.REVEALING:
            return False
        return slot_index >= 0 and slot_index == self.first_uncollected_index()

    def resolve_unlock(self, slot_index: int, success: bool, now: int | None = None) -> bool:
        """Apply an unlock outcome; return True only when the slot became collected."""
        if not success:
            return False
        if self._phase != SessionPhase.REVEALING:
            return False
        if slot_index < 0 or slot_index != self.first_uncollected_index():
            return False

        self._collected[slot_index] = True
        if self.all_collected():
            now = self._now(now)
            self._reveal_deadline = 0
            self._cooldown_deadline = now + self._config.cooldown_duration_seconds
            self._phase = SessionPhase.COOLDOWN
        return True

    def snapshot(self) -> SessionSnapshot | None:
        if self._slots is None:
            return None
        return SessionSnapshot(
            collected=tuple(self._collected),
            slots=tuple(slot.to_serializable() for slot in self._slots),
            reveal_deadline=self._reveal_deadline,
            cooldown_deadline=self._cooldown_deadline,
        )

    def restore(
        self,
        snapshot: SessionSnapshot,
        catalog: RewardCatalog,
        resources: ResourceRegistry,
    ) -> None:
        slots = [
            GeneratedReward.from_serializable(entry, catalog, resources)
            for entry in snapshot.slots
        ]
        collected = list(snapshot.collected[: len(slots)])
        collected.extend([False] * (len(slots) - len(collected)))

        self._slots = slots or None
        self._collected = collected if slots else []
        self._reveal_deadline = snapshot.reveal_deadline
        self._cooldown_deadline = snapshot.cooldown_deadline
        if self._slots is None:
            self._phase = SessionPhase.UNINITIALIZED
        elif self._cooldown_deadline and self.all_collected():
            self._phase = SessionPhase.COOLDOWN
        else:
            self._phase = SessionPhase.REVEALING

    def _start_cycle(self, now: int) -> bool:
        count = self._config.slot_count
        if count <= 0:
            logger.warning("Session has no reward slots configured; cycle not started.")
            return False
        self._slots = self._pool.generate_sequence(count, self._config.force_super_last)
        self._collected = [False] * len(self._slots)
        self._reveal_deadline = now + self._config.reveal_duration_seconds
        self._cooldown_deadline = 0
        self._cycle += 1
        logger.debug("Started reward cycle %s with %s slots.", self._cycle, len(self._slots))
        return True

    def _now(self, now: int | None) -> int:
        return int(now) if now is not None else int(self._clock())
