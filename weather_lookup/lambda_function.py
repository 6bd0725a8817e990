"""
AWS Lambda handler with FastAPI application for the weather lookup gateway.
"""

import logging
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query
from fastapi.responses import JSONResponse
from mangum import Mangum

from weather_lookup.classifier import error_body
from weather_lookup.config import CORSConfig, LambdaConfig, get_openweather_api_key
from weather_lookup.weather_service import WeatherGatewayService

# Configure logging
logging.basicConfig(
    level=getattr(logging, LambdaConfig.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def get_weather_service() -> WeatherGatewayService:
    """Build a service per request so the key is read at call time."""
    return WeatherGatewayService(get_openweather_api_key())


def create_response(status_code: int, body: Any) -> JSONResponse:
    """JSON response carrying the CORS headers."""
    return JSONResponse(
        status_code=status_code, content=body, headers=dict(CORSConfig.HEADERS)
    )


# Initialize FastAPI app
app = FastAPI(
    title="Weather Lookup Gateway",
    description="Serverless proxy for current weather by city name",
    version="1.0.0",
)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint providing API information."""
    return create_response(
        200,
        {
            "service": "Weather Lookup Gateway",
            "version": "1.0.0",
            "status": "active",
            "environment": LambdaConfig.ENV,
            "endpoints": {
                "weather": "/weather?city=CITY_NAME",
                "health_check": "/health",
            },
        },
    )


# Health check endpoint
@app.get("/health")
async def health_check(service: WeatherGatewayService = Depends(get_weather_service)):
    """Health check endpoint; reports configuration without calling the provider."""
    return create_response(200, service.health_check())


# CORS preflight
@app.options("/weather")
async def weather_preflight():
    return create_response(200, {"message": "OK"})


# Current weather endpoint
@app.get("/weather")
async def get_weather(
    city: Optional[str] = Query(None, description="City name to look up"),
    service: WeatherGatewayService = Depends(get_weather_service),
):
    """
    Get current weather for a city.

    Returns the provider payload unchanged on success. Failures come back as
    ``{"error": ..., "message": ...}`` with the gateway's own status code.
    """
    result = await service.lookup(city)
    return create_response(result.status_code, result.body)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):  # pylint: disable=unused-argument
    """Global exception handler for unhandled errors."""
    logger.error("Unhandled exception: %s", type(exc).__name__)
    return create_response(
        500, error_body("Internal server error", "An unexpected error occurred")
    )


# AWS Lambda handler using Mangum
lambda_handler = Mangum(
    app, lifespan="off", api_gateway_base_path=LambdaConfig.API_GATEWAY_BASE_PATH
)
