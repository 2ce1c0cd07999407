"""
sap_b1.core.connection - High-level connection management
==========================================================

Provides a ConnectionContext that resolves settings from arguments or the
environment and wires SessionManager and RequestExecutor together.
"""

from __future__ import annotations

import os
from typing import Optional, Union

from sap_b1.core.executor import RequestExecutor
from sap_b1.core.models import DEFAULT_LANGUAGE, Credentials, ServiceLayerConfig
from sap_b1.core.session import SessionManager


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() not in ("false", "0", "no", "off")


class ConnectionContext:
    """
    High-level connection manager for the Service Layer.

    Parameters
    ----------
    base_url : str, optional
        Service root. Falls back to SAP_B1_URL env var.
    database : str, optional
        Company database. Falls back to SAP_B1_DATABASE env var.
    user : str, optional
        Falls back to SAP_B1_USER env var.
    password : str, optional
        Falls back to SAP_B1_PASS env var.
    language : str, optional
        Falls back to SAP_B1_LANGUAGE env var, then "29".
    verify : bool or str, optional
        TLS verification. Falls back to SAP_B1_VERIFY_TLS env var (default true).
    timeout : float, optional
        Default per-call timeout, 0 waits forever. Falls back to SAP_B1_TIMEOUT.

    Examples
    --------
    >>> with ConnectionContext() as conn:  # reads SAP_B1_* env vars
    ...     items = conn.executor.get("Items", page=0, page_size=50).items
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        database: Optional[str] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        language: Optional[str] = None,
        verify: Optional[Union[bool, str]] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._base_url = (base_url or os.environ.get("SAP_B1_URL", "")).rstrip("/")
        self._database = database or os.environ.get("SAP_B1_DATABASE", "")
        self._user = user or os.environ.get("SAP_B1_USER", "")
        self._password = password or os.environ.get("SAP_B1_PASS", "")
        self._language = language or os.environ.get("SAP_B1_LANGUAGE", DEFAULT_LANGUAGE)

        if verify is not None:
            self._verify = verify
        else:
            self._verify = _env_flag("SAP_B1_VERIFY_TLS", True)

        if timeout is not None:
            self._timeout = float(timeout)
        else:
            self._timeout = float(os.environ.get("SAP_B1_TIMEOUT", "0"))

        if not self._base_url:
            raise ValueError(
                "Missing base_url. Set SAP_B1_URL environment variable "
                "or pass base_url parameter."
            )
        if not (self._database and self._user and self._password):
            raise ValueError(
                "Missing credentials. Set SAP_B1_DATABASE/SAP_B1_USER/SAP_B1_PASS "
                "environment variables, or pass database/user/password parameters."
            )

        self._sessions: Optional[SessionManager] = None
        self._executor: Optional[RequestExecutor] = None

    def config(self) -> ServiceLayerConfig:
        return ServiceLayerConfig(
            base_url=self._base_url,
            credentials=Credentials(self._database, self._user, self._password, self._language),
            timeout=self._timeout,
            verify=self._verify,
        )

    @property
    def sessions(self) -> SessionManager:
        """Get or create the SessionManager."""
        if self._sessions is None:
            self._sessions = SessionManager(self.config())
        return self._sessions

    @property
    def executor(self) -> RequestExecutor:
        """Get or create the RequestExecutor."""
        if self._executor is None:
            self._executor = RequestExecutor(self.sessions)
        return self._executor

    def close(self) -> None:
        """Forget the session and close the HTTP connection."""
        if self._sessions is not None:
            self._sessions.logout()
            self._sessions.close()
            self._sessions = None
            self._executor = None

    def __enter__(self) -> "ConnectionContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def base_url(self) -> str:
        """The configured service root."""
        return self._base_url

    @property
    def database(self) -> str:
        return self._database
