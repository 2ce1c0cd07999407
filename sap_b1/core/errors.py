"""
sap_b1.core.errors - Service Layer error taxonomy
==================================================

Every failure raised by the client derives from ``ServiceLayerError``:

- TransportError: no HTTP response at all (never retried)
- AuthExpired: HTTP 401, recoverable through a fresh login
- TransientGateway: HTTP 502, recoverable through a blind retry
- RequestRejected: any other HTTP error status (always fatal)
- ProtocolDecodeError: a batch part whose JSON body cannot be parsed
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ServiceLayerError(RuntimeError):
    """Base class for all errors raised by the Service Layer client."""


class TransportError(ServiceLayerError):
    """
    Raised when a request never produced an HTTP response.

    The underlying ``requests`` exception is available as ``__cause__``.

    Attributes
    ----------
    url : str
        The URL that was called
    """

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Transport failure for {url}: {reason}")
        self.url = url
        self.status = None


class UpstreamError(ServiceLayerError):
    """
    Exception raised when the Service Layer answers with an error status.

    Attributes
    ----------
    status : int
        HTTP status code
    body : str
        Provider error text (truncated for display)
    url : str
        The URL that was called
    headers : dict
        Response headers
    """

    def __init__(
        self,
        status: int,
        body: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        snippet = (body or "")[:1200]
        super().__init__(f"Service Layer error {status} for {url}: {snippet}")
        self.status = status
        self.body = body or ""
        self.url = url
        self.headers = headers or {}


class AuthExpired(UpstreamError):
    """HTTP 401: the session cookie is no longer accepted."""


class TransientGateway(UpstreamError):
    """HTTP 502: the gateway in front of the Service Layer hiccupped."""


class RequestRejected(UpstreamError):
    """Any other HTTP error status."""


class ProtocolDecodeError(ServiceLayerError):
    """
    Raised (and attached to the affected batch record) when the JSON body
    of a batch response part cannot be parsed.

    Attributes
    ----------
    raw : str
        The text accumulated between the brace lines
    """

    def __init__(self, raw: str, reason: str) -> None:
        super().__init__(f"Malformed JSON in batch response part: {reason}")
        self.raw = raw


def upstream_error_for(
    status: int,
    body: str,
    url: str,
    headers: Optional[Dict[str, str]] = None,
) -> UpstreamError:
    """Build the ``UpstreamError`` subclass matching an HTTP status."""
    if status == 401:
        cls = AuthExpired
    elif status == 502:
        cls = TransientGateway
    else:
        cls = RequestRejected
    return cls(status, body, url, headers)


def extract_provider_error(data: Any, fallback: str) -> str:
    """
    Flatten a Service Layer error payload into a single line.

    The Service Layer answers errors as::

        {"error": {"code": -5002, "message": {"lang": "en-us", "value": "..."}}}
    """
    if not isinstance(data, dict):
        return fallback
    err = data.get("error")
    if not isinstance(err, dict):
        return fallback

    code = err.get("code")
    message = None
    if isinstance(err.get("message"), dict):
        message = err["message"].get("value")
    elif isinstance(err.get("message"), str):
        message = err.get("message")

    parts = []
    if code is not None:
        parts.append(f"code={code}")
    if message:
        parts.append(f"message={message}")
    return " | ".join(parts) or fallback
