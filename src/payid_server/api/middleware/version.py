"""``PayID-API-Version`` header handling for the private API.

Requests must send ``PayID-API-Version: YYYY-MM-DD``; versions older than
the server's are rejected. Every response advertises the server version.
"""

from __future__ import annotations

import re
from datetime import date
from typing import TYPE_CHECKING, Annotated

from fastapi import Header, Request

from payid_server.errors.definitions import ErrInvalidAPIVersion, ErrMissingAPIVersion
from payid_server.errors.payid_errors import APIVersionError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from fastapi import FastAPI
    from starlette.responses import Response

PAYID_API_VERSION_HEADER = "PayID-API-Version"

_VERSION_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_api_version(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` API version.

    Raises:
        APIVersionError: If *value* is not a valid calendar date in that form.
    """
    if not _VERSION_RE.match(value):
        raise ErrInvalidAPIVersion
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ErrInvalidAPIVersion from None


async def require_api_version(
    request: Request,
    payid_api_version: Annotated[str | None, Header(alias=PAYID_API_VERSION_HEADER)] = None,
) -> str | None:
    """Dependency enforcing the request's ``PayID-API-Version`` header.

    Raises:
        APIVersionError: If the header is missing, malformed, or older than
            the server's private API version.
    """
    api_config = request.app.state.config.api
    if not api_config.require_version_header:
        return payid_api_version
    if not payid_api_version:
        raise ErrMissingAPIVersion

    requested = parse_api_version(payid_api_version)
    if requested < parse_api_version(api_config.private_api_version):
        msg = (
            f"The PayID-API-Version {payid_api_version} is not supported, "
            f"please try upgrading your request to at least {api_config.private_api_version}"
        )
        raise APIVersionError(msg)
    return payid_api_version


def setup_version_header(app: FastAPI, version: str) -> None:
    """Add middleware stamping ``PayID-API-Version`` on every response."""

    @app.middleware("http")
    async def _stamp_version(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        response = await call_next(request)
        response.headers[PAYID_API_VERSION_HEADER] = version
        return response
