"""Exceptions raised by RewardBar domain services."""


class RewardBarError(RuntimeError):
    """Base class for domain exceptions."""


class InvalidSnapshot(RewardBarError):
    """Raised when a persisted session payload does not have the expected shape."""
