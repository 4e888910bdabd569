"""Telegram integration helpers."""

from .aiogram_router import build_router
from .keyboards import progress_bar_keyboard

__all__ = [
    "build_router",
    "progress_bar_keyboard",
]
