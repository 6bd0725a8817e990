"""
HTTP transports for current-weather lookups.

Two strategies share one request/decode path:

* ``OpenWeatherMapClient`` calls the provider directly and holds the API key.
  The gateway uses it server-side.
* ``WeatherGatewayClient`` calls the gateway function and never carries a
  credential. This is what the widget uses by default.
"""

import asyncio
import logging
from typing import Optional, Protocol
from urllib.parse import urlsplit

import aiohttp

from weather_lookup.config import ClientConfig, ExternalAPIConfig
from weather_lookup.models import HTTPResult, OutboundRequest, WeatherQuery

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Accept": "application/json"}


class WeatherAPIError(Exception):
    """Custom exception for weather API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class RequestTimeoutError(WeatherAPIError):
    """The outbound request did not complete within the configured bound."""


class NetworkError(WeatherAPIError):
    """No response was received from the remote end."""


class ResponseParseError(WeatherAPIError):
    """A 2xx response arrived but its body was not valid JSON."""


class ConfigurationError(WeatherAPIError):
    """The selected transport cannot be built from the given settings."""


def build_provider_request(
    query: WeatherQuery, api_key: str, base_url: Optional[str] = None
) -> OutboundRequest:
    """Build the GET for ``<provider>/data/2.5/weather``."""
    base = (base_url or ExternalAPIConfig.OPENWEATHER_BASE_URL).rstrip("/")
    return OutboundRequest(
        url=f"{base}/weather",
        params={
            "q": query.city,
            "appid": api_key,
            "units": ExternalAPIConfig.OPENWEATHER_UNITS,
        },
        headers=dict(JSON_HEADERS),
    )


def build_gateway_request(query: WeatherQuery, gateway_url: str) -> OutboundRequest:
    """Build the GET for the gateway function. No credential is attached."""
    return OutboundRequest(
        url=gateway_url,
        params={"city": query.city},
        headers=dict(JSON_HEADERS),
    )


async def fetch_json(request: OutboundRequest, timeout: float) -> HTTPResult:
    """
    Perform a GET and decode the JSON body, whatever the status code.

    Args:
        request: Request to send
        timeout: Total time budget in seconds for connect plus body read

    Returns:
        HTTPResult: Status code and decoded payload

    Raises:
        RequestTimeoutError: If the time budget expires
        NetworkError: If no response could be obtained
        ResponseParseError: If a 2xx body is not valid JSON
    """
    host = urlsplit(request.url).netloc
    client_timeout = aiohttp.ClientTimeout(total=timeout)

    try:
        async with aiohttp.ClientSession(timeout=client_timeout) as session:
            async with session.get(
                request.url, params=request.params, headers=request.headers
            ) as response:
                try:
                    payload = await response.json(content_type=None)
                except (aiohttp.ContentTypeError, ValueError) as e:
                    if not 200 <= response.status < 300:
                        # Proxies answer 5xx with HTML; the status alone decides
                        logger.warning(
                            "Non-JSON error body from %s (status: %d)",
                            host,
                            response.status,
                        )
                        return HTTPResult(status_code=response.status, payload=None)

                    logger.error(
                        "Undecodable body from %s (status: %d)", host, response.status
                    )
                    raise ResponseParseError(
                        "Failed to parse response from weather API",
                        status_code=response.status,
                    ) from e

                logger.debug("Received status %d from %s", response.status, host)
                return HTTPResult(status_code=response.status, payload=payload)

    except asyncio.TimeoutError as e:
        logger.warning("Request to %s timed out after %.1f seconds", host, timeout)
        raise RequestTimeoutError("Request timeout") from e

    except aiohttp.ClientError as e:
        # Exception text can carry the full URL, query string included
        logger.warning("Connection to %s failed: %s", host, type(e).__name__)
        raise NetworkError(f"Unable to reach {host}") from e


class Transport(Protocol):
    """What the widget needs from a transport strategy."""

    holds_credential: bool

    @property
    def is_configured(self) -> bool: ...

    async def get_current_weather(self, query: WeatherQuery) -> HTTPResult: ...


class OpenWeatherMapClient:
    """
    Asynchronous client for the OpenWeatherMap current-weather endpoint.
    """

    holds_credential = True

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the OpenWeatherMap client.

        Args:
            api_key: OpenWeatherMap API key
            base_url: Provider base URL (defaults to config value)
            timeout: Request timeout in seconds (defaults to config value)
        """
        self.api_key = api_key
        self.base_url = base_url or ExternalAPIConfig.OPENWEATHER_BASE_URL
        self.timeout = timeout or ExternalAPIConfig.REQUEST_TIMEOUT

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def build_request(self, query: WeatherQuery) -> OutboundRequest:
        return build_provider_request(query, self.api_key, self.base_url)

    async def get_current_weather(self, query: WeatherQuery) -> HTTPResult:
        """
        Fetch current conditions for a city.

        The status code is returned as-is; deciding what it means is left
        to the classifier.
        """
        logger.debug("Requesting weather data for city: %s", query.city)
        return await fetch_json(self.build_request(query), self.timeout)


class WeatherGatewayClient:
    """Client for the gateway function that proxies to the provider."""

    holds_credential = False

    def __init__(self, gateway_url: str, timeout: Optional[float] = None):
        self.gateway_url = gateway_url
        self.timeout = timeout or ExternalAPIConfig.REQUEST_TIMEOUT

    @property
    def is_configured(self) -> bool:
        return bool(self.gateway_url)

    def build_request(self, query: WeatherQuery) -> OutboundRequest:
        return build_gateway_request(query, self.gateway_url)

    async def get_current_weather(self, query: WeatherQuery) -> HTTPResult:
        logger.debug("Requesting weather data via gateway for city: %s", query.city)
        return await fetch_json(self.build_request(query), self.timeout)


def create_transport(
    transport: Optional[str] = None,
    gateway_url: Optional[str] = None,
    api_key: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Transport:
    """
    Select a transport strategy by name.

    Args:
        transport: "gateway" or "direct" (defaults to WEATHER_TRANSPORT)
        gateway_url: Gateway endpoint (defaults to WEATHER_GATEWAY_URL)
        api_key: Provider key, used by the direct transport only
        timeout: Request timeout in seconds

    Raises:
        ConfigurationError: If the transport name is not recognised
    """
    name = (transport or ClientConfig.TRANSPORT).strip().lower()

    if name == "gateway":
        return WeatherGatewayClient(
            gateway_url if gateway_url is not None else ClientConfig.GATEWAY_URL,
            timeout=timeout,
        )

    if name == "direct":
        logger.warning(
            "Direct transport selected; the provider key must stay on a trusted host"
        )
        return OpenWeatherMapClient(api_key or "", timeout=timeout)

    raise ConfigurationError(f"Unknown transport '{name}'")
