"""Rendering of RC envelopes as HTTP responses."""

from collections.abc import Mapping
from typing import Any

from fastapi import status
from fastapi.responses import JSONResponse


def envelope_status_code(envelope: Mapping[str, Any]) -> int:
    """HTTP status for an envelope.

    Successful envelopes are 200. Failures use the envelope's own
    ``statuscode`` when it is an error code, and 502 otherwise.
    """
    if envelope.get("status") is True:
        return status.HTTP_200_OK
    statuscode = envelope.get("statuscode")
    if (
        isinstance(statuscode, int)
        and not isinstance(statuscode, bool)
        and 400 <= statuscode < 600
    ):
        return statuscode
    return status.HTTP_502_BAD_GATEWAY


def envelope_response(envelope: Mapping[str, Any]) -> JSONResponse:
    """Render an envelope body exactly as given."""
    return JSONResponse(
        status_code=envelope_status_code(envelope),
        content=dict(envelope),
    )
