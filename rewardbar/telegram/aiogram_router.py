"""Factory helpers to wire RewardBar campaigns into aiogram."""

from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from ..app import CampaignApp
from ..domain.campaign import SessionView, UnlockStatus
from ..domain.session import SessionPhase, SlotState
from .api_utils import safe_callback_answer, safe_message_answer, safe_message_edit_text
from .keyboards import (
    LOCKED_DATA,
    REFRESH_DATA,
    parse_unlock_callback,
    progress_bar_keyboard,
    slot_label,
)


def build_router(app: CampaignApp) -> Router:
    ensure_catalog_ready(app)

    router = Router()
    campaigns = app.campaigns

    @router.message(Command("start"))
    async def handle_start(message: Message) -> None:
        await safe_message_answer(message, render_help_message())

    @router.message(Command("help"))
    async def handle_help(message: Message) -> None:
        await safe_message_answer(message, render_help_message())

    @router.message(Command("rewards"))
    async def handle_rewards(message: Message) -> None:
        user = message.from_user
        if not user:
            return
        view = await campaigns.open(user.id)
        await safe_message_answer(
            message, format_session_message(view), reply_markup=progress_bar_keyboard(view)
        )

    @router.message(Command("cooldown"))
    async def handle_cooldown(message: Message) -> None:
        user = message.from_user
        if not user:
            return
        view = await campaigns.view(user.id)
        if view.phase == SessionPhase.COOLDOWN:
            await safe_message_answer(
                message, f"Next rewards in {format_countdown(view.seconds_remaining)}."
            )
        else:
            await safe_message_answer(message, "No cooldown right now. Open /rewards!")

    @router.callback_query(lambda c: c.data == REFRESH_DATA)
    async def handle_refresh(callback: CallbackQuery) -> None:
        user = callback.from_user
        if not user:
            return
        view = await campaigns.open(user.id)
        await safe_callback_answer(callback)
        await safe_message_edit_text(
            callback.message,
            format_session_message(view),
            reply_markup=progress_bar_keyboard(view),
        )

    @router.callback_query(lambda c: c.data == LOCKED_DATA)
    async def handle_locked(callback: CallbackQuery) -> None:
        await safe_callback_answer(callback, "Collect the earlier rewards first.")

    @router.callback_query(lambda c: parse_unlock_callback(c.data) is not None)
    async def handle_unlock(callback: CallbackQuery) -> None:
        user = callback.from_user
        parsed = parse_unlock_callback(callback.data)
        if not user or parsed is None:
            return
        slot_index, cycle = parsed
        view = await campaigns.view(user.id)
        if view.cycle != cycle:
            await safe_callback_answer(callback, "These rewards have expired.", show_alert=True)
        else:
            outcome = await campaigns.unlock(user.id, slot_index)
            await safe_callback_answer(callback, describe_unlock(outcome.status, outcome.message))
            view = await campaigns.view(user.id)
        await safe_message_edit_text(
            callback.message,
            format_session_message(view),
            reply_markup=progress_bar_keyboard(view),
        )

    return router


def ensure_catalog_ready(app: CampaignApp) -> None:
    if not len(app.rewards.catalog):
        raise RuntimeError(
            "The reward catalog is empty. Register templates with app.rewards.template(...) "
            "or load_catalog_from_json before building the router."
        )
    if app.config.session.slot_count <= 0:
        raise RuntimeError("Session slot_count must be positive to run a progress bar.")


def describe_unlock(status: UnlockStatus, message: str | None = None) -> str:
    if status == UnlockStatus.GRANTED:
        return "Reward collected!"
    if status == UnlockStatus.DECLINED:
        return message or "Video not available"
    if status == UnlockStatus.BUSY:
        return "An ad is already playing."
    if status == UnlockStatus.COOLDOWN:
        return "Rewards are on cooldown."
    if status == UnlockStatus.EXPIRED:
        return "These rewards have expired."
    return "Collect the earlier rewards first."


def format_countdown(seconds: int) -> str:
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


def format_session_message(view: SessionView) -> str:
    if view.phase == SessionPhase.COOLDOWN:
        return f"⏳ New rewards in {format_countdown(view.seconds_remaining)}."
    if view.phase == SessionPhase.UNINITIALIZED:
        return "Rewards are not available right now."

    lines = [f"🎁 Rewards — {format_countdown(view.seconds_remaining)} left", ""]
    for index, (reward, state) in enumerate(zip(view.slots, view.states), start=1):
        marker = {
            SlotState.COLLECTED: "✅",
            SlotState.AVAILABLE: "▶️",
            SlotState.LOCKED: "🔒",
        }[state]
        lines.append(f"{index}. {marker} {slot_label(reward)}")
    collected = sum(view.collected)
    lines.append("")
    lines.append(f"Progress: {collected}/{len(view.collected)}")
    return "\n".join(lines)


def render_help_message() -> str:
    lines = [
        "Watch short videos to unlock rewards one by one.",
        "",
        "Commands:",
        "• /rewards — open the reward bar",
        "• /cooldown — time until the next bar",
        "• /help — show this message",
    ]
    return "\n".join(lines)
