"""
Configuration constants for the weather lookup gateway and widget.
"""

import os


class ExternalAPIConfig:
    """External API configuration"""

    OPENWEATHER_BASE_URL = os.getenv(
        "OPENWEATHER_BASE_URL", "https://api.openweathermap.org/data/2.5"
    )
    OPENWEATHER_UNITS = "metric"
    OPENWEATHER_ICON_URL = "https://openweathermap.org/img/wn/{icon}@2x.png"

    # Applied to both the gateway->provider call and the widget->gateway call
    REQUEST_TIMEOUT = float(os.getenv("WEATHER_REQUEST_TIMEOUT", "10"))


class ValidationConfig:
    """Input validation limits shared by the widget and the gateway"""

    MAX_CITY_LENGTH = 100


class ClientConfig:
    """Widget-side configuration"""

    GATEWAY_URL = os.getenv("WEATHER_GATEWAY_URL", "")
    TRANSPORT = os.getenv("WEATHER_TRANSPORT", "gateway")
    DISPLAY_LOCALE = os.getenv("WEATHER_DISPLAY_LOCALE", "en_US")


class CORSConfig:
    """CORS headers attached to every gateway response"""

    HEADERS = {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": (
            "Content-Type,X-Amz-Date,Authorization,X-Api-Key,X-Amz-Security-Token"
        ),
        "Access-Control-Allow-Methods": "GET,OPTIONS",
    }


class LambdaConfig:
    """Lambda-specific configuration"""

    # Environment variables
    ENV = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    API_GATEWAY_BASE_PATH = os.getenv("API_GATEWAY_BASE_PATH", "/")


def get_openweather_api_key() -> str:
    """
    Read the provider API key.

    Looked up on every call so a rotated secret is picked up without a
    cold start.
    """
    return os.getenv("OPENWEATHER_API_KEY", "").strip()
