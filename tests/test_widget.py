"""
Widget tests: submission flow, sink side effects and stale-response handling.
"""

import asyncio
import json
from unittest.mock import patch

import pytest

from weather_lookup.classifier import INVALID_KEY_MESSAGE
from weather_lookup.external_api import (
    NetworkError,
    RequestTimeoutError,
    ResponseParseError,
    WeatherGatewayClient,
)
from weather_lookup.models import HTTPResult
from weather_lookup.widget import NOT_CONFIGURED_MESSAGE, WeatherWidget

from conftest import make_transport, mock_client_session


class TestSubmitSuccess:
    """Successful lookups."""

    def test_london_end_to_end(self, sink, ok_result):
        transport = make_transport(ok_result)
        widget = WeatherWidget(sink, transport=transport)

        view = asyncio.run(widget.submit("London"))

        assert view is not None
        assert view.location_label == "London, United Kingdom"
        assert view.temperature_display == "18"
        assert view.humidity_display == "60%"
        assert view.wind_display == "3.1 m/s"
        assert view.feels_like_display == "18°C"
        assert view.visibility_display == "10.0 km"
        assert sink.rendered == [view]

    def test_sink_call_order(self, sink, ok_result):
        widget = WeatherWidget(sink, transport=make_transport(ok_result))

        asyncio.run(widget.submit("London"))

        assert sink.names() == [
            "show_loading",
            "hide_error",
            "clear",
            "render",
            "hide_loading",
        ]

    def test_city_is_trimmed_before_sending(self, sink, ok_result):
        transport = make_transport(ok_result)
        widget = WeatherWidget(sink, transport=transport)

        asyncio.run(widget.submit("  London  "))

        query = transport.get_current_weather.call_args.args[0]
        assert query.city == "London"


class TestSubmitValidation:
    """Input rejected before any request."""

    @pytest.mark.parametrize("raw", ["", "   ", "\t"])
    def test_empty_input_sends_nothing(self, sink, raw):
        transport = make_transport()
        widget = WeatherWidget(sink, transport=transport)

        result = asyncio.run(widget.submit(raw))

        assert result is None
        assert sink.errors == ["Please enter a city name"]
        assert "show_loading" not in sink.names()
        transport.get_current_weather.assert_not_called()

    def test_too_long_input_sends_nothing(self, sink):
        transport = make_transport()
        widget = WeatherWidget(sink, transport=transport)

        asyncio.run(widget.submit("x" * 101))

        assert sink.errors == ["City name is too long"]
        transport.get_current_weather.assert_not_called()

    def test_unconfigured_transport_sends_nothing(self, sink):
        widget = WeatherWidget(sink, transport=WeatherGatewayClient(""))

        result = asyncio.run(widget.submit("London"))

        assert result is None
        assert sink.errors == [NOT_CONFIGURED_MESSAGE]

    def test_check_configuration(self, sink):
        widget = WeatherWidget(sink, transport=WeatherGatewayClient(""))

        assert widget.check_configuration() is False
        assert sink.errors == [NOT_CONFIGURED_MESSAGE]


class TestSubmitFailures:
    """Classified failures reach the sink as a single message."""

    def test_not_found(self, sink):
        result = HTTPResult(status_code=404, payload={"error": "Not found"})
        widget = WeatherWidget(sink, transport=make_transport(result))

        view = asyncio.run(widget.submit("Atlantis"))

        assert view is None
        assert sink.errors == ["City not found. Please check the city name and try again."]
        assert sink.rendered == []
        assert sink.names()[-1] == "hide_loading"

    def test_gateway_401_points_to_support(self, sink):
        widget = WeatherWidget(sink, transport=make_transport(HTTPResult(status_code=401)))

        asyncio.run(widget.submit("London"))

        assert sink.errors == ["Authorization error. Please contact support."]

    def test_direct_401_asks_to_check_key(self, sink):
        transport = make_transport(HTTPResult(status_code=401), holds_credential=True)
        widget = WeatherWidget(sink, transport=transport)

        asyncio.run(widget.submit("London"))

        assert sink.errors == [INVALID_KEY_MESSAGE]

    @pytest.mark.parametrize(
        "error,message",
        [
            (
                NetworkError("Unable to reach gw.test"),
                "Unable to connect to the weather service. "
                "Please check your internet connection.",
            ),
            (
                ResponseParseError("Failed to parse response from weather API"),
                "Failed to parse response from weather API",
            ),
            (
                RequestTimeoutError("Request timeout"),
                "The weather service took too long to respond. Please try again later.",
            ),
        ],
    )
    def test_transport_errors(self, sink, error, message):
        widget = WeatherWidget(sink, transport=make_transport(side_effect=error))

        asyncio.run(widget.submit("London"))

        assert sink.errors == [message]
        assert sink.names()[-1] == "hide_loading"

    def test_malformed_payload_never_renders(self, sink, london_payload):
        london_payload["weather"] = []
        result = HTTPResult(status_code=200, payload=london_payload)
        widget = WeatherWidget(sink, transport=make_transport(result))

        asyncio.run(widget.submit("London"))

        assert sink.rendered == []
        assert sink.errors == ["Received incomplete weather data. Please try again later."]

    def test_gateway_html_error_page_uses_status(self, sink):
        session_cls, _ = mock_client_session(
            503, json_error=json.JSONDecodeError("Expecting value", "<html>", 0)
        )
        widget = WeatherWidget(sink, transport=WeatherGatewayClient("https://gw.test/weather"))

        with patch("weather_lookup.external_api.aiohttp.ClientSession", session_cls):
            asyncio.run(widget.submit("London"))

        assert sink.errors == [
            "Weather service is temporarily unavailable. Please try again later."
        ]
        assert sink.names()[-1] == "hide_loading"

    @pytest.mark.parametrize("dt", [10**14, -(10**14)])
    def test_out_of_range_timestamp_is_malformed(self, sink, london_payload, dt):
        london_payload["dt"] = dt
        result = HTTPResult(status_code=200, payload=london_payload)
        widget = WeatherWidget(sink, transport=make_transport(result))

        view = asyncio.run(widget.submit("London"))

        assert view is None
        assert sink.rendered == []
        assert sink.errors == ["Received incomplete weather data. Please try again later."]
        assert sink.names()[-1] == "hide_loading"

    def test_non_finite_reading_is_malformed(self, sink, london_payload):
        london_payload["main"]["temp"] = float("inf")
        result = HTTPResult(status_code=200, payload=london_payload)
        widget = WeatherWidget(sink, transport=make_transport(result))

        asyncio.run(widget.submit("London"))

        assert sink.rendered == []
        assert sink.errors == ["Received incomplete weather data. Please try again later."]

    def test_loading_hidden_on_unexpected_exception(self, sink):
        widget = WeatherWidget(sink, transport=make_transport(side_effect=RuntimeError("bug")))

        with pytest.raises(RuntimeError):
            asyncio.run(widget.submit("London"))

        assert sink.names()[-1] == "hide_loading"


class TestInputEvents:
    """Editing the field clears a visible error."""

    def test_clear_error_on_input(self, sink):
        widget = WeatherWidget(sink, transport=make_transport())

        widget.clear_error_on_input()

        assert sink.names() == ["hide_error"]


class TestStaleResponses:
    """An older response must never overwrite a newer one."""

    def test_slow_first_request_is_discarded(self, sink, london_payload):
        paris_payload = dict(london_payload, name="Paris", sys={"country": "FR"})

        async def scenario():
            release = asyncio.Event()

            async def get_current_weather(query):
                if query.city == "London":
                    await release.wait()
                    return HTTPResult(status_code=200, payload=london_payload)
                return HTTPResult(status_code=200, payload=paris_payload)

            transport = make_transport()
            transport.get_current_weather = get_current_weather
            widget = WeatherWidget(sink, transport=transport)

            slow = asyncio.create_task(widget.submit("London"))
            await asyncio.sleep(0)
            fresh = await widget.submit("Paris")
            release.set()
            stale = await slow
            return widget, stale, fresh

        widget, stale, fresh = asyncio.run(scenario())

        assert stale is None
        assert fresh.location_label == "Paris, France"
        assert [view.location_label for view in sink.rendered] == ["Paris, France"]
        assert sink.names().count("hide_loading") == 1
        assert sink.names()[-1] == "hide_loading"
        assert widget.generation == 2

    def test_stale_failure_is_not_shown(self, sink, london_payload):
        async def scenario():
            release = asyncio.Event()

            async def get_current_weather(query):
                if query.city == "Atlantis":
                    await release.wait()
                    return HTTPResult(status_code=404)
                return HTTPResult(status_code=200, payload=london_payload)

            transport = make_transport()
            transport.get_current_weather = get_current_weather
            widget = WeatherWidget(sink, transport=transport)

            slow = asyncio.create_task(widget.submit("Atlantis"))
            await asyncio.sleep(0)
            await widget.submit("London")
            release.set()
            await slow

        asyncio.run(scenario())

        assert sink.errors == []
        assert len(sink.rendered) == 1

    def test_rejected_submission_supersedes_in_flight_lookup(self, sink, london_payload):
        async def scenario():
            release = asyncio.Event()

            async def get_current_weather(query):
                await release.wait()
                return HTTPResult(status_code=200, payload=london_payload)

            transport = make_transport()
            transport.get_current_weather = get_current_weather
            widget = WeatherWidget(sink, transport=transport)

            slow = asyncio.create_task(widget.submit("London"))
            await asyncio.sleep(0)
            rejected = await widget.submit("   ")
            release.set()
            stale = await slow
            return rejected, stale

        rejected, stale = asyncio.run(scenario())

        assert rejected is None
        assert stale is None
        assert sink.rendered == []
        assert sink.errors == ["Please enter a city name"]
        assert sink.names().count("hide_loading") == 1
        assert sink.names()[-2:] == ["hide_loading", "show_error"]
