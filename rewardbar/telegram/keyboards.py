"""Keyboard helpers for RewardBar bots."""

from __future__ import annotations

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from ..domain.campaign import SessionView
from ..domain.rewards import GeneratedReward
from ..domain.session import SessionPhase, SlotState

UNLOCK_PREFIX = "rewardbar:unlock:"
LOCKED_DATA = "rewardbar:locked"
REFRESH_DATA = "rewardbar:refresh"


def slot_label(reward: GeneratedReward) -> str:
    if reward.template is None:
        return "Mystery reward"
    name = reward.resource.name if reward.resource else reward.template.display_name
    label = f"{name} x{reward.amount}" if reward.amount else name
    return f"⭐ {label}" if reward.is_super_reward else label


def unlock_callback_data(slot_index: int, cycle: int) -> str:
    return f"{UNLOCK_PREFIX}{slot_index}:{cycle}"


def parse_unlock_callback(data: str | None) -> tuple[int, int] | None:
    if not data or not data.startswith(UNLOCK_PREFIX):
        return None
    parts = data[len(UNLOCK_PREFIX):].split(":")
    if len(parts) != 2:
        return None
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        return None


def progress_bar_keyboard(view: SessionView) -> InlineKeyboardMarkup:
    rows: list[list[InlineKeyboardButton]] = []
    if view.phase == SessionPhase.REVEALING:
        for index, (reward, state) in enumerate(zip(view.slots, view.states)):
            label = slot_label(reward)
            if state == SlotState.COLLECTED:
                rows.append([InlineKeyboardButton(text=f"✅ {label}", callback_data=LOCKED_DATA)])
            elif state == SlotState.AVAILABLE:
                rows.append(
                    [
                        InlineKeyboardButton(
                            text=f"▶️ Watch ad: {label}",
                            callback_data=unlock_callback_data(index, view.cycle),
                        )
                    ]
                )
            else:
                rows.append([InlineKeyboardButton(text=f"🔒 {label}", callback_data=LOCKED_DATA)])
    rows.append([InlineKeyboardButton(text="🔄 Refresh", callback_data=REFRESH_DATA)])
    return InlineKeyboardMarkup(inline_keyboard=rows)
