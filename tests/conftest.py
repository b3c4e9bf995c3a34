"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before any app import so settings resolve
to test-friendly values.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Callable, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.app_factory import create_app
from app.core.config import AppSettings, CacheSettings, LogSettings, Settings


class FakeClock:
    """Deterministic clock used to test expiration logic."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def build_settings(**app_overrides) -> Settings:
    """Settings for an isolated test app; ``app_overrides`` go to AppSettings."""

    app_values = {
        "rate_limit_enabled": True,
        "rate_limit_requests": 1000,
        "rate_limit_window_seconds": 900,
    }
    app_values.update(app_overrides)
    return Settings(
        app=AppSettings(**app_values),
        cache=CacheSettings(),
        log=LogSettings(level="WARNING"),
    )


@pytest.fixture
def app() -> FastAPI:
    return create_app(build_settings())


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Test client with the lifespan running (components are built on enter)."""

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_client() -> Callable[..., TestClient]:
    """Build a TestClient for a fresh app; kwargs override AppSettings."""

    def _make(**app_overrides) -> TestClient:
        return TestClient(create_app(build_settings(**app_overrides)))

    return _make
