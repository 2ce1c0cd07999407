"""
sap_b1.core.http - Shared requests plumbing
============================================

Builds the ``requests.Session`` used by the client and wraps a single HTTP
exchange so that failures surface as ``sap_b1.core.errors`` exceptions.
"""

from __future__ import annotations

from http.cookiejar import DefaultCookiePolicy
from typing import Any, Dict, List, Optional, Union
import logging
import re
import time

import requests
import urllib3
from requests import Response, Session
from requests.adapters import HTTPAdapter
from urllib3.exceptions import InsecureRequestWarning

from sap_b1.core.errors import (
    TransportError,
    extract_provider_error,
    upstream_error_for,
)
from sap_b1.core.models import ServiceLayerConfig

logger = logging.getLogger("sap_b1.http")

# comma that starts a new cookie, not one inside an Expires date
_MERGED_COOKIE_SPLIT = re.compile(r",\s*(?=[^;,=\s]+=)")


def build_http_session(cfg: ServiceLayerConfig) -> Session:
    """
    Create the ``requests.Session`` used for every Service Layer call.

    The cookie jar refuses every cookie: the session cookie is tracked by
    SessionManager and sent explicitly, never by the jar. Transport level
    retries are disabled; RetryPolicy owns retry semantics.
    """
    sess = requests.Session()
    sess.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
    sess.headers.update({
        "Accept": "application/json",
        "User-Agent": cfg.user_agent,
    })
    sess.verify = cfg.verify

    if cfg.verify is False:
        logger.warning("TLS certificate verification disabled for %s", cfg.base_url)
        urllib3.disable_warnings(InsecureRequestWarning)

    adapter = HTTPAdapter(max_retries=0, pool_connections=10, pool_maxsize=20)
    sess.mount("https://", adapter)
    sess.mount("http://", adapter)
    return sess


def resolve_timeout(timeout: Optional[float]) -> Optional[float]:
    """Map the Service Layer convention (0 = wait forever) to requests'."""
    if not timeout:
        return None
    return float(timeout)


def set_cookie_entries(r: Response) -> List[str]:
    """Return every ``Set-Cookie`` header of a response, unmerged."""
    raw_headers = getattr(r.raw, "headers", None)
    if isinstance(raw_headers, urllib3.HTTPHeaderDict):
        return list(raw_headers.getlist("Set-Cookie"))
    value = r.headers.get("Set-Cookie")
    if not value:
        return []
    return [entry.strip() for entry in _MERGED_COOKIE_SPLIT.split(value) if entry.strip()]


def decode_json(r: Response) -> Any:
    """Decode a JSON response body; empty bodies (204) decode to None."""
    if not r.content:
        return None
    try:
        return r.json()
    except ValueError:
        return {"raw": r.text, "content_type": r.headers.get("Content-Type", "")}


def _error_text(r: Response) -> str:
    try:
        data = r.json()
    except ValueError:
        return r.text
    return extract_provider_error(data, r.text)


def send(
    http: Session,
    method: str,
    url: str,
    *,
    headers: Dict[str, str],
    data: Optional[Union[str, bytes]] = None,
    timeout: Optional[float] = None,
    verify: Union[bool, str] = True,
) -> Response:
    """
    Issue one HTTP exchange.

    Raises
    ------
    TransportError
        When no response was received
    UpstreamError
        ``AuthExpired``, ``TransientGateway`` or ``RequestRejected`` for any
        status >= 400
    """
    t0 = time.perf_counter()
    try:
        r = http.request(
            method=method,
            url=url,
            headers=headers,
            data=data,
            timeout=resolve_timeout(timeout),
            verify=verify,
        )
    except requests.RequestException as exc:
        raise TransportError(url, str(exc)) from exc

    dt = (time.perf_counter() - t0) * 1000.0
    logger.debug("%s %s %s %sms", method.upper(), url, r.status_code, round(dt, 1))

    if r.status_code >= 400:
        raise upstream_error_for(r.status_code, _error_text(r), url, dict(r.headers))
    return r
