"""
Pytest configuration and shared fixtures for the onboarding tests.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from DecibelOnboard.config_loader import SettingsStore
from DecibelOnboard.decibel_models import MarketSpec


class RecordingSleep:
    """Stand-in for asyncio.sleep that records the requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def market():
    """BTC-PERP with 9/9 decimals, 0.001 tick and 0.0001 lot/minimum."""
    return MarketSpec(
        market_name="BTC-PERP",
        market_addr="0x" + "ab" * 32,
        price_decimals=9,
        size_decimals=9,
        tick_size=1_000_000,
        lot_size=100_000,
        min_size=100_000,
        max_leverage=40.0,
    )


@pytest.fixture
def store_factory(tmp_path):
    """Build a SettingsStore rooted in tmp_path with an isolated environment."""

    def make(env_lines=None, yaml_text=None, environ=None):
        env_path = tmp_path / ".env"
        config_path = tmp_path / "config.yaml"
        if env_lines is not None:
            env_path.write_text("\n".join(env_lines) + "\n")
        if yaml_text is not None:
            config_path.write_text(yaml_text)
        return SettingsStore(env_path=env_path, config_path=config_path, environ=environ or {})

    return make
