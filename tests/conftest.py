"""
Pytest configuration and shared fixtures.
"""

from typing import List, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest

from weather_lookup.models import HTTPResult


class RecordingSink:
    """Presentation sink that records every call in order."""

    def __init__(self):
        self.calls: List[Tuple] = []

    def show_loading(self):
        self.calls.append(("show_loading",))

    def hide_loading(self):
        self.calls.append(("hide_loading",))

    def show_error(self, message):
        self.calls.append(("show_error", message))

    def hide_error(self):
        self.calls.append(("hide_error",))

    def render(self, view):
        self.calls.append(("render", view))

    def clear(self):
        self.calls.append(("clear",))

    def names(self) -> List[str]:
        return [call[0] for call in self.calls]

    @property
    def errors(self) -> List[str]:
        return [call[1] for call in self.calls if call[0] == "show_error"]

    @property
    def rendered(self) -> list:
        return [call[1] for call in self.calls if call[0] == "render"]


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def sample_api_key() -> str:
    """Sample API key for testing."""
    return "test_openweather_api_key_123"


@pytest.fixture
def london_payload() -> dict:
    """OpenWeatherMap current-weather response for London (metric units)."""
    return {
        "name": "London",
        "sys": {"country": "GB"},
        "weather": [{"main": "Clear", "icon": "01d", "description": "clear sky"}],
        "main": {"temp": 18.2, "humidity": 60, "feels_like": 17.9, "pressure": 1013},
        "wind": {"speed": 3.1},
        "visibility": 10000,
        "dt": 1704110400,  # 2024-01-01 12:00:00 UTC
        "cod": 200,
    }


def mock_client_session(status=200, json_data=None, json_error=None, get_error=None):
    """Patchable stand-in for aiohttp.ClientSession."""
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=json_data, side_effect=json_error)

    session = MagicMock()
    if get_error is not None:
        session.get.side_effect = get_error
    else:
        session.get.return_value.__aenter__.return_value = response

    session_cls = MagicMock()
    session_cls.return_value.__aenter__.return_value = session
    return session_cls, session


def make_transport(result=None, side_effect=None, holds_credential=False):
    """Transport double returning ``result`` or raising ``side_effect``."""
    transport = MagicMock()
    transport.holds_credential = holds_credential
    transport.is_configured = True
    transport.get_current_weather = AsyncMock(return_value=result, side_effect=side_effect)
    return transport


@pytest.fixture
def ok_result(london_payload) -> HTTPResult:
    return HTTPResult(status_code=200, payload=london_payload)
