"""Upstream RC API client.

This service performs the outbound registration lookup: a form-encoded POST
of ``id_number`` to the configured RC details URL, forwarding the caller's
Authorization header. The decoded response body is returned as is; anything
that prevents a JSON envelope is raised as ``RCUpstreamError``.
"""

from typing import Any

import httpx
import structlog

from rcgateway.config import Settings, get_settings
from rcgateway.core.exceptions import ExternalServiceError

logger = structlog.get_logger(__name__)


class RCUpstreamError(ExternalServiceError):
    """Raised when the upstream RC API fails or returns an unusable response.

    Attributes:
        upstream_status: HTTP status returned by upstream, if any
        payload: Decoded upstream response body, if it was JSON
    """

    code: str = "RC_UPSTREAM_ERROR"
    message: str = "RC details service request failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        upstream_status: int | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        super().__init__(message=message, details=details or None)
        self.upstream_status = upstream_status
        self.payload = payload


class RCUpstreamClient:
    """Async client for the upstream RC details API.

    Usage:
        ```python
        client = RCUpstreamClient(settings)
        envelope = await client.fetch_rc_details("MH12AB1234", authorization=token)
        await client.close()
        ```
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Application settings (defaults to the cached settings)
            transport: Optional httpx transport, used by tests
        """
        self._settings = settings or get_settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def _user_agent(self) -> str:
        """User-Agent header sent upstream."""
        return f"{self._settings.app_name}/{self._settings.app_version}"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._settings.rc_api_timeout,
                headers={
                    "User-Agent": self._user_agent,
                    "Accept": "application/json",
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def fetch_rc_details(
        self,
        rc_number: str,
        *,
        authorization: str | None = None,
    ) -> dict[str, Any]:
        """Look up RC details upstream.

        Args:
            rc_number: Registration number to look up
            authorization: Authorization header value to forward

        Returns:
            The decoded upstream envelope, success or ``status=False``

        Raises:
            RCUpstreamError: On transport errors, timeouts, HTTP error
                statuses and bodies that are not a JSON envelope
        """
        client = await self._get_client()
        headers = {"Authorization": authorization} if authorization else {}

        logger.info("rc_upstream_request", rc_number=rc_number)
        try:
            response = await client.post(
                self._settings.rc_details_url,
                data={"id_number": rc_number},
                headers=headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "rc_upstream_failed",
                status_code=e.response.status_code,
                rc_number=rc_number,
            )
            raise RCUpstreamError(
                f"RC details request failed: {e.response.status_code}",
                upstream_status=e.response.status_code,
                payload=_json_or_none(e.response),
            ) from e
        except httpx.TimeoutException as e:
            logger.error("rc_upstream_timeout", rc_number=rc_number)
            raise RCUpstreamError("RC details request timed out") from e
        except httpx.RequestError as e:
            logger.error("rc_upstream_request_error", error=str(e), rc_number=rc_number)
            raise RCUpstreamError("RC details service unavailable") from e

        payload = _json_or_none(response)
        if payload is None:
            logger.error("rc_upstream_invalid_body", rc_number=rc_number)
            raise RCUpstreamError(
                "RC details service returned a non-JSON response",
                upstream_status=response.status_code,
            )

        # The envelope is forwarded verbatim; only its status flag is checked
        if not isinstance(payload.get("status"), bool):
            logger.error("rc_upstream_invalid_envelope", rc_number=rc_number)
            raise RCUpstreamError(
                "RC details service returned a malformed response",
                upstream_status=response.status_code,
                payload=payload,
            )

        logger.info(
            "rc_upstream_response",
            rc_number=rc_number,
            status=payload["status"],
            statuscode=payload.get("statuscode"),
        )
        return payload


def _json_or_none(response: httpx.Response) -> dict[str, Any] | None:
    """Decode a JSON object body, or return None."""
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None
