"""
Turn a successful provider payload into a WeatherView.
"""

import logging
import math
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from babel import Locale, UnknownLocaleError
from babel.dates import format_datetime
from pydantic import ValidationError

from weather_lookup.config import ClientConfig
from weather_lookup.external_api import WeatherAPIError
from weather_lookup.models import OpenWeatherMapResponse, WeatherView

logger = logging.getLogger(__name__)

OBSERVED_AT_PATTERN = "EEEE, MMMM d, y 'at' hh:mm a"
DEFAULT_LOCALE = "en_US"


class MalformedPayloadError(WeatherAPIError):
    """A 2xx payload that cannot produce a complete WeatherView."""


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward positive infinity."""
    return int(math.floor(value + 0.5))


def to_one_decimal(value: float) -> float:
    # Decimal(value) keeps the exact binary value, so 1.25 -> 1.3 like toFixed
    return float(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def country_name(country_code: Optional[str], locale: Optional[str] = None) -> str:
    """
    Resolve an ISO 3166-1 alpha-2 code to a region name.

    Falls back to the raw code when the locale or the code is unknown.
    """
    if not country_code:
        return ""
    try:
        territories = Locale.parse(locale or ClientConfig.DISPLAY_LOCALE).territories
    except (UnknownLocaleError, ValueError) as e:
        logger.warning("Region lookup unavailable for locale %s: %s", locale, e)
        return country_code
    return territories.get(country_code.upper()) or country_code


def format_observed_at(observed_at: datetime, locale: Optional[str] = None) -> str:
    """Long date-time label, e.g. "Monday, January 1, 2024 at 12:00 PM"."""
    try:
        return format_datetime(
            observed_at,
            OBSERVED_AT_PATTERN,
            locale=locale or ClientConfig.DISPLAY_LOCALE,
        )
    except (UnknownLocaleError, ValueError) as e:
        logger.warning("Date formatting unavailable for locale %s: %s", locale, e)
        return format_datetime(observed_at, OBSERVED_AT_PATTERN, locale=DEFAULT_LOCALE)


def normalize_weather(
    payload: Any,
    observed_at: Optional[datetime] = None,
    locale: Optional[str] = None,
) -> WeatherView:
    """
    Build a WeatherView from a provider success payload.

    Args:
        payload: Decoded JSON from a 2xx response
        observed_at: Override for the observation time; otherwise the
            provider's ``dt`` is used, then the current time
        locale: Locale for the region name and date label

    Returns:
        WeatherView: Fully populated view

    Raises:
        MalformedPayloadError: If the weather list is empty, a required
            field is missing or not finite, or ``dt`` is out of range
    """
    if not isinstance(payload, dict):
        raise MalformedPayloadError("Weather payload is not a JSON object")

    if not payload.get("weather"):
        raise MalformedPayloadError("Weather payload has no weather conditions")

    try:
        data = OpenWeatherMapResponse.model_validate(payload)
    except ValidationError as e:
        logger.warning("Incomplete weather payload: %d field error(s)", e.error_count())
        raise MalformedPayloadError("Weather payload is missing required fields") from e

    region = country_name(data.sys.country, locale)
    location_label = f"{data.name}, {region}" if region else data.name

    if observed_at is None:
        if data.dt is not None:
            try:
                observed_at = datetime.fromtimestamp(data.dt, tz=timezone.utc)
            except (ValueError, OverflowError, OSError) as e:
                raise MalformedPayloadError(
                    "Weather payload has an invalid observation time"
                ) from e
        else:
            observed_at = datetime.now(timezone.utc)

    condition = data.weather[0]

    return WeatherView(
        location_label=location_label,
        observed_at=observed_at,
        observed_at_label=format_observed_at(observed_at, locale),
        icon_ref=condition.icon,
        description=condition.description,
        temperature_c=round_half_up(data.main.temp),
        humidity_pct=data.main.humidity,
        wind_speed_ms=data.wind.speed,
        feels_like_c=round_half_up(data.main.feels_like),
        visibility_km=to_one_decimal(data.visibility / 1000),
    )
