"""Client for the remote presentation match feed."""

from typing import Any

import httpx

from matchboard.common.config import PresentationApiConfig
from matchboard.common.logging import get_logger
from matchboard.common.time_utils import local_date_string
from matchboard.presentation.models import RemoteMatchRecord
from matchboard.presentation.validation import parse_remote_matches

logger = get_logger(__name__)


class PresentationApiClient:
    """Fetches the day's matches from the presentation endpoint.

    The endpoint answers ``{"ok": true, "matches": [...]}`` on success.
    ``fetch_matches`` never raises: transport errors, non-success statuses
    and malformed payloads all yield an empty list, which callers treat as
    "no update available".

    Usage:
        async with PresentationApiClient(config) as client:
            matches = await client.fetch_matches("2025-01-01")
    """

    def __init__(
        self,
        config: PresentationApiConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client.

        Args:
            config: Remote feed configuration.
            transport: Optional transport override, used by tests.
        """
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.base_url.rstrip("/"),
            timeout=self.config.timeout_seconds,
            transport=self._transport,
        )

    async def __aenter__(self) -> "PresentationApiClient":
        """Async context manager entry."""
        self._client = self._build_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get HTTP client."""
        if self._client is None:
            # Create a one-shot client if not in context manager
            self._client = self._build_client()
        return self._client

    async def fetch_matches(self, date: str | None = None) -> list[RemoteMatchRecord]:
        """Fetch remote matches for a calendar date.

        Args:
            date: Date as YYYY-MM-DD; today in the configured zone if omitted.

        Returns:
            Checked remote records, empty on any failure.
        """
        if not self.config.is_configured:
            logger.debug("presentation_api_not_configured")
            return []

        date = date or local_date_string(self.config.timezone)
        try:
            response = await self.client.get(self.config.matches_path, params={"date": date})
        except httpx.HTTPError as e:
            logger.warning("presentation_fetch_failed", date=date, error=str(e))
            return []
        except Exception as e:
            logger.error("presentation_fetch_error", date=date, error=str(e))
            return []

        if response.status_code != 200:
            logger.warning(
                "presentation_fetch_failed",
                date=date,
                status=response.status_code,
                response=response.text[:200],
            )
            return []

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning("presentation_payload_invalid", date=date, error=str(e))
            return []

        if (
            not isinstance(payload, dict)
            or payload.get("ok") is not True
            or not isinstance(payload.get("matches"), list)
        ):
            logger.warning("presentation_payload_invalid", date=date, reason="bad envelope")
            return []

        matches = parse_remote_matches(payload["matches"])
        logger.info(
            "presentation_fetch_success",
            date=date,
            received=len(payload["matches"]),
            accepted=len(matches),
        )
        return matches
