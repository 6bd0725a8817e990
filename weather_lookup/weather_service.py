"""
Gateway service layer: validation, provider call and response mapping.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from weather_lookup.classifier import (
    Classification,
    FailureKind,
    GatewayResponse,
    classify_exception,
    classify_status,
    error_body,
    to_gateway_response,
)
from weather_lookup.external_api import OpenWeatherMapClient, WeatherAPIError
from weather_lookup.models import QueryValidationError, ValidationKind, validate_city

logger = logging.getLogger(__name__)

GATEWAY_VALIDATION_MESSAGES = {
    ValidationKind.EMPTY_INPUT: "City parameter is required",
    ValidationKind.TOO_LONG: "City name is too long",
}


class WeatherGatewayService:
    """
    Stateless, per-request handler that proxies a city lookup to the
    provider while keeping the API key server-side.
    """

    def __init__(self, api_key: str, api_client: Optional[OpenWeatherMapClient] = None):
        """
        Initialize the gateway service.

        Args:
            api_key: OpenWeatherMap API key
            api_client: Provider client (built from api_key when omitted)
        """
        self.api_key = api_key
        self.api_client = api_client or OpenWeatherMapClient(api_key)

    async def lookup(self, city: Optional[str]) -> GatewayResponse:
        """
        Resolve a browser lookup into the gateway's own status and body.

        Args:
            city: Raw ``city`` query parameter

        Returns:
            GatewayResponse: Pass-through payload on success, otherwise an
            ``{error, message}`` body that never contains the API key
        """
        if not self.api_key:
            logger.error("OPENWEATHER_API_KEY environment variable is not set")
            return GatewayResponse(
                status_code=500,
                body=error_body(
                    "Internal server error",
                    "Weather service is not configured properly",
                ),
            )

        try:
            query = validate_city(city)
        except QueryValidationError as e:
            logger.info("Rejected city parameter (%s)", e.kind.value)
            return GatewayResponse(
                status_code=400,
                body=error_body("Bad request", GATEWAY_VALIDATION_MESSAGES[e.kind]),
            )

        try:
            result = await self.api_client.get_current_weather(query)
            classification = classify_status(
                result.status_code, result.payload, holds_credential=True
            )
        except WeatherAPIError as e:
            logger.error("Error fetching weather data for %s: %s", query.city, e.message)
            classification = classify_exception(e)

        self._log_outcome(query.city, classification)
        return to_gateway_response(classification)

    def _log_outcome(self, city: str, classification: Classification) -> None:
        if classification.ok and classification.status_code == 200:
            logger.info("Fetched weather for %s", city)
        elif classification.ok:
            logger.error(
                "Unexpected success status from weather API for %s (status: %s)",
                city,
                classification.status_code,
            )
        elif classification.kind == FailureKind.AUTH_ERROR:
            logger.error(
                "Weather API rejected the configured API key (status: %s)",
                classification.status_code,
            )
        elif classification.kind in (FailureKind.NOT_FOUND, FailureKind.RATE_LIMITED):
            logger.warning(
                "Weather API returned %s for %s",
                classification.status_code,
                city,
            )
        elif classification.kind in (
            FailureKind.BAD_REQUEST,
            FailureKind.PROVIDER_UNAVAILABLE,
            FailureKind.UNKNOWN_ERROR,
        ):
            logger.error(
                "Unexpected response from weather API for %s (status: %s)",
                city,
                classification.status_code,
            )

    def health_check(self) -> Dict[str, Any]:
        """
        Report whether the gateway can serve lookups.

        The provider is not called; only the presence of the key is checked.
        """
        key_configured = bool(self.api_key)
        return {
            "status": "healthy" if key_configured else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": {
                "provider_credential": "configured" if key_configured else "missing",
            },
        }
