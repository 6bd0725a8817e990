"""
Status classification for weather lookups.

Every outcome of a lookup, whether an HTTP status from the provider or
gateway or a transport failure, resolves to exactly one ``Classification``.
The same table serves the widget and the gateway; the gateway then re-maps
the classification onto its own status codes with ``to_gateway_response``.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

from weather_lookup.external_api import (
    NetworkError,
    RequestTimeoutError,
    ResponseParseError,
    WeatherAPIError,
)
from weather_lookup.normalizer import MalformedPayloadError


class FailureKind(str, Enum):
    """Typed failure categories surfaced to the user."""

    BAD_REQUEST = "BadRequest"
    AUTH_ERROR = "AuthError"
    NOT_FOUND = "NotFound"
    RATE_LIMITED = "RateLimited"
    PROVIDER_UNAVAILABLE = "ProviderUnavailable"
    NETWORK_ERROR = "NetworkError"
    REQUEST_TIMEOUT = "RequestTimeout"
    PARSE_ERROR = "ParseError"
    MALFORMED_PAYLOAD = "MalformedPayload"
    UNKNOWN_ERROR = "UnknownError"


INVALID_KEY_MESSAGE = "Invalid API key. Please check your OpenWeatherMap API key."
FALLBACK_MESSAGE = "An error occurred while fetching weather data."

STATUS_TABLE = {
    400: (FailureKind.BAD_REQUEST, "Invalid request. Please check your input."),
    401: (FailureKind.AUTH_ERROR, "Authorization error. Please contact support."),
    403: (FailureKind.AUTH_ERROR, "Authorization error. Please contact support."),
    404: (
        FailureKind.NOT_FOUND,
        "City not found. Please check the city name and try again.",
    ),
    429: (
        FailureKind.RATE_LIMITED,
        "Too many requests. Please wait a moment and try again.",
    ),
    500: (
        FailureKind.PROVIDER_UNAVAILABLE,
        "Weather service is temporarily unavailable. Please try again later.",
    ),
    502: (
        FailureKind.PROVIDER_UNAVAILABLE,
        "Weather service is temporarily unavailable. Please try again later.",
    ),
    503: (
        FailureKind.PROVIDER_UNAVAILABLE,
        "Weather service is temporarily unavailable. Please try again later.",
    ),
}

EXCEPTION_TABLE = (
    (
        RequestTimeoutError,
        FailureKind.REQUEST_TIMEOUT,
        "The weather service took too long to respond. Please try again later.",
    ),
    (
        NetworkError,
        FailureKind.NETWORK_ERROR,
        "Unable to connect to the weather service. "
        "Please check your internet connection.",
    ),
    (
        ResponseParseError,
        FailureKind.PARSE_ERROR,
        "Failed to parse response from weather API",
    ),
    (
        MalformedPayloadError,
        FailureKind.MALFORMED_PAYLOAD,
        "Received incomplete weather data. Please try again later.",
    ),
)


class Classification(BaseModel):
    """Either a success carrying the raw payload or a typed failure."""

    ok: bool
    kind: Optional[FailureKind] = None
    message: Optional[str] = None
    status_code: Optional[int] = None
    payload: Any = None

    @classmethod
    def success(cls, status_code: int, payload: Any) -> "Classification":
        return cls(ok=True, status_code=status_code, payload=payload)

    @classmethod
    def failure(
        cls, kind: FailureKind, message: str, status_code: Optional[int] = None
    ) -> "Classification":
        return cls(ok=False, kind=kind, message=message, status_code=status_code)


def _payload_message(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return None


def classify_status(
    status_code: int, payload: Any = None, holds_credential: bool = False
) -> Classification:
    """
    Classify an HTTP status and its body.

    Args:
        status_code: Status returned by the provider or gateway
        payload: Decoded JSON body, if any
        holds_credential: True when the caller owns the API key (direct
            transport). A 401 then asks the user to check the key instead
            of pointing them at support.

    Returns:
        Classification: success for any 2xx, otherwise a typed failure
    """
    if 200 <= status_code < 300:
        return Classification.success(status_code, payload)

    if status_code == 401 and holds_credential:
        return Classification.failure(
            FailureKind.AUTH_ERROR, INVALID_KEY_MESSAGE, status_code
        )

    if status_code in STATUS_TABLE:
        kind, message = STATUS_TABLE[status_code]
        return Classification.failure(kind, message, status_code)

    return Classification.failure(
        FailureKind.UNKNOWN_ERROR,
        _payload_message(payload) or FALLBACK_MESSAGE,
        status_code,
    )


def classify_exception(error: WeatherAPIError) -> Classification:
    """Classify a failure where no usable response was obtained."""
    for error_type, kind, message in EXCEPTION_TABLE:
        if isinstance(error, error_type):
            return Classification.failure(kind, message, error.status_code)
    return Classification.failure(
        FailureKind.UNKNOWN_ERROR, FALLBACK_MESSAGE, error.status_code
    )


class GatewayResponse(BaseModel):
    """Status code and JSON body the gateway sends back to the browser."""

    status_code: int
    body: Any


def error_body(error: str, message: str) -> dict:
    return {"error": error, "message": message}


def to_gateway_response(classification: Classification) -> GatewayResponse:
    """
    Re-express a provider classification as the gateway's own response.

    Provider credential failures become a generic 500 so the browser can
    never tell a bad key apart from any other internal fault.

    Only a provider 200 is passed through; any other 2xx is unexpected.
    """
    if classification.ok and classification.status_code == 200:
        return GatewayResponse(status_code=200, body=classification.payload)

    kind = classification.kind

    if kind == FailureKind.NOT_FOUND:
        return GatewayResponse(
            status_code=404,
            body=error_body(
                "Not found",
                "City not found. Please check the city name and try again.",
            ),
        )

    if kind == FailureKind.AUTH_ERROR and classification.status_code == 401:
        return GatewayResponse(
            status_code=500,
            body=error_body(
                "Internal server error", "Weather service authentication failed"
            ),
        )

    if kind == FailureKind.RATE_LIMITED:
        return GatewayResponse(
            status_code=429,
            body=error_body(
                "Too many requests",
                "Weather service rate limit exceeded. Please try again later.",
            ),
        )

    if kind in (
        FailureKind.NETWORK_ERROR,
        FailureKind.REQUEST_TIMEOUT,
        FailureKind.PARSE_ERROR,
    ):
        return GatewayResponse(
            status_code=503,
            body=error_body(
                "Service unavailable",
                "Unable to fetch weather data. Please try again later.",
            ),
        )

    return GatewayResponse(
        status_code=502,
        body=error_body(
            "Bad gateway", "Weather service returned an unexpected response"
        ),
    )
