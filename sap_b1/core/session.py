"""
sap_b1.core.session - Service Layer session management
=======================================================

Owns the credentials, the service root and the session cookie pair:

- Login against ``{base_url}/Login`` with 502 retries
- Cookie / route-affinity token extraction from ``Set-Cookie``
- Single-writer re-login on expired sessions
- Local logout
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple
import json
import logging
import threading

from requests import Session as HTTPSession

from sap_b1.core import http
from sap_b1.core.errors import TransportError, UpstreamError
from sap_b1.core.models import Credentials, ServiceLayerConfig, Session
from sap_b1.core.retry import RetryDecision, RetryPolicy

ROUTE_MARKER = "ROUTEID"


def split_cookies(entries: Iterable[str]) -> Tuple[str, str]:
    """
    Split raw ``Set-Cookie`` entries into (cookie, route_token).

    Each entry is split once on its first ``=``; everything after it is kept
    verbatim as the value, attributes included. Pairs are concatenated with
    no separator. Entries mentioning ROUTEID go to the route token.

    Examples
    --------
    >>> split_cookies(["B1SESSION=abc", "ROUTEID=.node1"])
    ('B1SESSION=abc', 'ROUTEID=.node1')
    """
    cookie = ""
    route_token = ""
    for entry in entries:
        name, _, value = entry.partition("=")
        pair = f"{name}={value}"
        if ROUTE_MARKER in entry:
            route_token += pair
        else:
            cookie += pair
    return cookie, route_token


class SessionManager:
    """
    Authenticated session for the SAP Business One Service Layer.

    All session mutation happens under one lock, so concurrent callers that
    all observe an expired session trigger a single re-login.

    Parameters
    ----------
    cfg : ServiceLayerConfig
        Connection configuration
    http_session : requests.Session, optional
        Pre-built HTTP session (mostly for tests)

    Examples
    --------
    >>> cfg = ServiceLayerConfig(
    ...     base_url="https://b1.example.com:50000/b1s/v1",
    ...     credentials=Credentials("SBODEMOUS", "manager", "secret"),
    ...     verify=False,
    ... )
    >>> with SessionManager(cfg) as sm:
    ...     sm.login()
    ...     sm.current_cookie()
    """

    def __init__(
        self,
        cfg: ServiceLayerConfig,
        http_session: Optional[HTTPSession] = None,
        policy: Optional[RetryPolicy] = None,
    ) -> None:
        self.cfg = cfg
        self.http = http_session or http.build_http_session(cfg)
        self.policy = policy or RetryPolicy(cfg.max_retries)
        self.logger = logging.getLogger("sap_b1.session")

        self._credentials = cfg.credentials
        self._session = Session(base_url=cfg.base_url.rstrip("/"))
        self._lock = threading.Lock()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.http.close()

    def __enter__(self) -> "SessionManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- accessors ----------------

    @property
    def base_url(self) -> str:
        return self._session.base_url

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    @property
    def is_authenticated(self) -> bool:
        return bool(self._session.cookie)

    def current_cookie(self) -> str:
        return self._session.cookie

    def current_route_token(self) -> str:
        return self._session.route_token

    def snapshot(self) -> Session:
        """Return a copy of the current session state."""
        with self._lock:
            return Session(
                base_url=self._session.base_url,
                cookie=self._session.cookie,
                route_token=self._session.route_token,
            )

    # ---------------- login/logout ----------------

    def login(
        self,
        credentials: Optional[Credentials] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Session:
        """
        Log in and rebuild the session from scratch.

        Parameters
        ----------
        credentials : Credentials, optional
            Replaces the stored credentials wholesale
        base_url : str, optional
            Replaces the service root
        timeout : float, optional
            Per-call timeout; falls back to the configured one

        Returns
        -------
        Session
            Copy of the new session state

        Raises
        ------
        TransportError
            No response from the server (never retried)
        UpstreamError
            Any error status, or a 502 still failing after the retry budget
        """
        with self._lock:
            self._login_locked(credentials, base_url, timeout)
            return Session(
                base_url=self._session.base_url,
                cookie=self._session.cookie,
                route_token=self._session.route_token,
            )

    def refresh(self, stale_cookie: str, timeout: Optional[float] = None) -> None:
        """
        Re-login after a 401 observed while sending ``stale_cookie``.

        When another caller already replaced that cookie, the fresh session
        is reused and no second login is issued.
        """
        with self._lock:
            if self._session.cookie and self._session.cookie != stale_cookie:
                self.logger.debug("Session already refreshed by another caller")
                return
            self._login_locked(None, None, timeout)

    def logout(self) -> None:
        """
        Forget the session locally.

        The Service Layer drops idle sessions on its own; only the client
        side cookie pair needs to go.
        """
        with self._lock:
            self._session.cookie = ""
            self._session.route_token = ""
        self.logger.info("Logged out from %s", self._session.base_url)

    def _login_locked(
        self,
        credentials: Optional[Credentials],
        base_url: Optional[str],
        timeout: Optional[float],
    ) -> None:
        if credentials is not None:
            self._credentials = credentials
        if base_url is not None:
            self._session.base_url = base_url.rstrip("/")

        # A stale cookie sent along with the login makes the Service Layer fail.
        self._session.cookie = ""
        self._session.route_token = ""
        self.http.cookies.clear()

        url = f"{self._session.base_url}/Login"
        payload = json.dumps(self._credentials.login_payload())
        headers = {"Content-Type": "application/json"}
        call_timeout = self.cfg.timeout if timeout is None else timeout

        attempt = 0
        while True:
            try:
                r = http.send(
                    self.http,
                    "POST",
                    url,
                    headers=headers,
                    data=payload,
                    timeout=call_timeout,
                    verify=self.cfg.verify,
                )
                break
            except TransportError:
                self.logger.error("Login to %s failed: no response", url)
                raise
            except UpstreamError as exc:
                decision = self.policy.decide(attempt, exc.status, allow_reconnect=False)
                if decision is RetryDecision.FATAL:
                    self.logger.error("Login to %s failed with status %s", url, exc.status)
                    raise
                attempt += 1
                self.logger.warning("Login got %s, retrying (%d/%d)", exc.status, attempt, self.policy.max_retries)

        cookie, route_token = split_cookies(http.set_cookie_entries(r))
        self._session.cookie = cookie
        self._session.route_token = route_token
        self.logger.info(
            "Logged in to %s as %s@%s",
            self._session.base_url,
            self._credentials.username,
            self._credentials.database,
        )
