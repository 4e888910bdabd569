"""Testing utilities for RewardBar."""

from .factory import ResourceFactory, TemplateFactory
from .fixtures import app_fixture, memory_app
from .test_client import TestClient

__all__ = [
    "ResourceFactory",
    "TemplateFactory",
    "app_fixture",
    "memory_app",
    "TestClient",
]
