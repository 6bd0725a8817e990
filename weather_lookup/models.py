"""
Pydantic models for request/response validation.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from weather_lookup.config import ExternalAPIConfig, ValidationConfig


class ValidationKind(str, Enum):
    """Reasons a city name is rejected before any request is sent."""

    EMPTY_INPUT = "EmptyInput"
    TOO_LONG = "TooLong"


class QueryValidationError(Exception):
    """Raised when raw user input cannot become a WeatherQuery."""

    def __init__(self, kind: ValidationKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(message)


class WeatherQuery(BaseModel):
    """A validated city lookup."""

    city: str = Field(
        ..., min_length=1, max_length=ValidationConfig.MAX_CITY_LENGTH
    )


def validate_city(raw_city: Optional[str]) -> WeatherQuery:
    """
    Turn raw form input into a WeatherQuery.

    The city is trimmed and otherwise passed through untouched; no case
    folding or transliteration happens here.

    Raises:
        QueryValidationError: EmptyInput for blank input, TooLong when the
            trimmed name exceeds MAX_CITY_LENGTH characters
    """
    city = (raw_city or "").strip()
    if not city:
        raise QueryValidationError(
            ValidationKind.EMPTY_INPUT, "Please enter a city name"
        )
    if len(city) > ValidationConfig.MAX_CITY_LENGTH:
        raise QueryValidationError(ValidationKind.TOO_LONG, "City name is too long")
    return WeatherQuery(city=city)


class OutboundRequest(BaseModel):
    """A fully built HTTP GET, ready to hand to a transport."""

    url: str
    params: Dict[str, str]
    headers: Dict[str, str] = Field(default_factory=dict)


class HTTPResult(BaseModel):
    """Status code and decoded JSON body of a completed request."""

    status_code: int
    payload: Any = None


# OpenWeatherMap current-weather payload


class WeatherCondition(BaseModel):
    """One entry of the provider's weather list."""

    icon: str
    description: str
    main: Optional[str] = None


class MainReadings(BaseModel):
    """The provider's "main" block."""

    temp: float = Field(..., allow_inf_nan=False)
    feels_like: float = Field(..., allow_inf_nan=False)
    humidity: int


class WindReadings(BaseModel):
    """The provider's "wind" block."""

    speed: float = Field(..., allow_inf_nan=False)


class SysInfo(BaseModel):
    """The provider's "sys" block."""

    country: Optional[str] = None


class OpenWeatherMapResponse(BaseModel):
    """Model for OpenWeatherMap API response."""

    name: str = Field(..., description="City name")
    sys: SysInfo = Field(default_factory=SysInfo)
    weather: List[WeatherCondition] = Field(..., description="Weather conditions")
    main: MainReadings = Field(..., description="Main weather data")
    wind: WindReadings
    visibility: float = Field(
        ..., allow_inf_nan=False, description="Visibility in meters"
    )
    dt: Optional[int] = Field(None, description="Data calculation time")


class WeatherView(BaseModel):
    """Display-ready projection of a successful provider response."""

    location_label: str
    observed_at: datetime
    observed_at_label: str
    icon_ref: str
    description: str
    temperature_c: int
    humidity_pct: int
    wind_speed_ms: float
    feels_like_c: int
    visibility_km: float

    @property
    def icon_url(self) -> str:
        return ExternalAPIConfig.OPENWEATHER_ICON_URL.format(icon=self.icon_ref)

    @property
    def temperature_display(self) -> str:
        return str(self.temperature_c)

    @property
    def humidity_display(self) -> str:
        return f"{self.humidity_pct}%"

    @property
    def wind_display(self) -> str:
        return f"{self.wind_speed_ms:g} m/s"

    @property
    def feels_like_display(self) -> str:
        return f"{self.feels_like_c}°C"

    @property
    def visibility_display(self) -> str:
        return f"{self.visibility_km:.1f} km"


class ErrorResponse(BaseModel):
    """Response body returned by the gateway on failure."""

    error: str
    message: str
