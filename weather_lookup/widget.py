"""
Weather lookup widget controller.

The widget owns no rendering. It validates the city, asks a transport for
the weather, classifies the outcome and hands the result to an injected
presentation sink.
"""

import logging
from typing import Optional, Protocol, Union

from weather_lookup.classifier import Classification, classify_exception, classify_status
from weather_lookup.external_api import Transport, WeatherAPIError, create_transport
from weather_lookup.models import (
    QueryValidationError,
    WeatherQuery,
    WeatherView,
    validate_city,
)
from weather_lookup.normalizer import normalize_weather

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = (
    "Weather service is not configured. Please set the gateway URL or API key."
)


class PresentationSink(Protocol):
    """Display surface driven by the widget."""

    def show_loading(self) -> None: ...

    def hide_loading(self) -> None: ...

    def show_error(self, message: str) -> None: ...

    def hide_error(self) -> None: ...

    def render(self, view: WeatherView) -> None: ...

    def clear(self) -> None: ...


class WeatherWidget:
    """
    Drives one presentation sink from user submissions.

    Each submission, valid or not, bumps a generation counter. When an
    older request finishes after a newer submission, its result is dropped
    so a slow response can never overwrite a fresher one.
    """

    def __init__(
        self,
        sink: PresentationSink,
        transport: Optional[Transport] = None,
        locale: Optional[str] = None,
    ):
        """
        Args:
            sink: Presentation surface to drive
            transport: Transport strategy (defaults to create_transport())
            locale: Locale for region names and dates
        """
        self.sink = sink
        self.transport = transport or create_transport()
        self.locale = locale
        self._generation = 0
        self._loading = False

    @property
    def generation(self) -> int:
        return self._generation

    def check_configuration(self) -> bool:
        """Show a configuration error when the transport cannot be used."""
        if not self.transport.is_configured:
            self.sink.show_error(NOT_CONFIGURED_MESSAGE)
            return False
        return True

    def clear_error_on_input(self) -> None:
        """Called when the user edits the city field."""
        self.sink.hide_error()

    async def submit(self, raw_city: Optional[str]) -> Optional[WeatherView]:
        """
        Look up the weather for raw form input and update the sink.

        Returns:
            The rendered WeatherView, or None when the submission failed,
            was rejected before sending, or was superseded
        """
        # Even a rejected submission supersedes whatever is still in flight
        self._generation += 1
        generation = self._generation

        try:
            query = validate_city(raw_city)
        except QueryValidationError as e:
            logger.debug("Rejected city input (%s)", e.kind.value)
            self._release_loading()
            self.sink.show_error(e.message)
            return None

        if not self.transport.is_configured:
            self._release_loading()
            self.check_configuration()
            return None

        self._loading = True
        self.sink.show_loading()
        self.sink.hide_error()
        self.sink.clear()

        try:
            outcome = await self._lookup(query)

            if generation != self._generation:
                logger.debug(
                    "Discarding stale response for %s (generation %d < %d)",
                    query.city,
                    generation,
                    self._generation,
                )
                return None

            if isinstance(outcome, WeatherView):
                self.sink.render(outcome)
                return outcome

            logger.info(
                "Weather lookup for %s failed: %s", query.city, outcome.kind.value
            )
            self.sink.show_error(outcome.message)
            return None

        finally:
            # A newer submission owns the loading indicator now
            if generation == self._generation:
                self._release_loading()

    def _release_loading(self) -> None:
        if self._loading:
            self._loading = False
            self.sink.hide_loading()

    async def _lookup(self, query: WeatherQuery) -> Union[WeatherView, Classification]:
        try:
            result = await self.transport.get_current_weather(query)
            classification = classify_status(
                result.status_code,
                result.payload,
                holds_credential=self.transport.holds_credential,
            )
            if not classification.ok:
                return classification
            return normalize_weather(classification.payload, locale=self.locale)

        except WeatherAPIError as e:
            return classify_exception(e)
