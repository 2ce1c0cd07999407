"""
sap_b1.core.executor - Request execution with retries
======================================================

Issues single calls and ``$batch`` calls against the Service Layer:

- Cookie injection from the SessionManager
- ``$skip`` / ``Prefer: odata.maxpagesize`` pagination
- 401 -> re-login and retry, 502 -> retry, shared attempt ceiling
- Batch encoding/decoding through sap_b1.batch.codec
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Generator, Mapping, Optional
import json
import logging

from requests import Response

from sap_b1.batch.codec import decode_batch, encode_batch
from sap_b1.batch.models import BatchRequest, BatchResult
from sap_b1.core import http
from sap_b1.core.errors import UpstreamError
from sap_b1.core.models import Operation, PagedResult
from sap_b1.core.retry import RetryDecision, RetryPolicy
from sap_b1.core.session import SessionManager

NEXT_LINK_KEYS = ("odata.nextLink", "@odata.nextLink")


def paged_path(path: str, page: Optional[int], page_size: Optional[int], default_size: int = 20) -> str:
    """
    Append ``$skip`` for the requested page.

    Examples
    --------
    >>> paged_path("Items", 2, 10)
    'Items?$skip=20'
    >>> paged_path("Items?$select=ItemCode", 1, None)
    'Items?$select=ItemCode&$skip=20'
    """
    if page is None:
        return path
    skip = page * (page_size or default_size)
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}$skip={skip}"


def _next_link(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    for key in NEXT_LINK_KEYS:
        if key in payload:
            return payload[key]
    return None


class RequestExecutor:
    """
    Executes Service Layer operations on behalf of a SessionManager.

    The executor never writes session state itself; it reads the current
    cookie and asks the manager to refresh it when the provider answers 401.

    Parameters
    ----------
    sessions : SessionManager
        Owner of the authenticated session
    policy : RetryPolicy, optional
        Retry decision table; defaults to the manager's policy
    inline_json : bool
        Passed to the batch decoder, see ``sap_b1.batch.codec``

    Examples
    --------
    >>> executor = RequestExecutor(SessionManager(cfg))
    >>> page = executor.execute(Operation("GET", "Items?$select=ItemCode"), page=0, page_size=50)
    >>> page.items, page.next
    """

    def __init__(
        self,
        sessions: SessionManager,
        policy: Optional[RetryPolicy] = None,
        *,
        inline_json: bool = False,
    ) -> None:
        self.sessions = sessions
        self.policy = policy or sessions.policy
        self.inline_json = inline_json
        self.logger = logging.getLogger("sap_b1.executor")

    # ---------------- helpers ----------------

    def _url(self, path: str) -> str:
        return f"{self.sessions.base_url}/{path}"

    def _timeout(self, timeout: Optional[float]) -> Optional[float]:
        return self.sessions.cfg.timeout if timeout is None else timeout

    def _ensure_session(self, timeout: Optional[float]) -> None:
        if not self.sessions.is_authenticated:
            self.sessions.refresh("", timeout=timeout)

    def _with_retries(
        self,
        method: str,
        url: str,
        headers_for: Callable[[str], Dict[str, str]],
        data: Optional[str],
        timeout: Optional[float],
    ) -> Response:
        """
        Send one logical request, retrying per the RetryPolicy.

        ``headers_for`` receives the cookie to send; it is called again on
        every attempt so a refreshed session is picked up.
        """
        call_timeout = self._timeout(timeout)
        self._ensure_session(call_timeout)

        attempt = 0
        while True:
            cookie = self.sessions.current_cookie()
            try:
                return http.send(
                    self.sessions.http,
                    method,
                    url,
                    headers=headers_for(cookie),
                    data=data,
                    timeout=call_timeout,
                    verify=self.sessions.cfg.verify,
                )
            except UpstreamError as exc:
                decision = self.policy.decide(attempt, exc.status)
                if decision is RetryDecision.FATAL:
                    raise
                attempt += 1
                if decision is RetryDecision.RETRY_AFTER_RECONNECT:
                    self.logger.warning(
                        "Reconnecting to Service Layer after %s on %s %s (%d/%d)",
                        exc.status, method, url, attempt, self.policy.max_retries,
                    )
                    self.sessions.refresh(cookie, timeout=call_timeout)
                else:
                    self.logger.warning(
                        "Retrying %s %s after %s (%d/%d)",
                        method, url, exc.status, attempt, self.policy.max_retries,
                    )

    # ---------------- single requests ----------------

    def execute(
        self,
        operation: Operation,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> PagedResult:
        """
        Execute one operation.

        Parameters
        ----------
        operation : Operation
            Method, relative path, headers and optional JSON body
        page : int, optional
            Zero-based page; appends ``$skip`` (page 0 included)
        page_size : int, optional
            Sets ``Prefer: odata.maxpagesize``; also the ``$skip`` stride
        timeout : float, optional
            Per-call timeout, 0 waits forever

        Returns
        -------
        PagedResult
            Decoded payload; ``previous``/``next`` set when paging
        """
        path = paged_path(operation.path, page, page_size, self.sessions.cfg.default_page_size)
        url = self._url(path)
        data = None
        if operation.body is not None:
            data = json.dumps(operation.body)

        def headers_for(cookie: str) -> Dict[str, str]:
            headers = {"Cookie": cookie}
            if data is not None:
                headers["Content-Type"] = "application/json"
            if page_size:
                headers["Prefer"] = f"odata.maxpagesize={page_size}"
            headers.update(operation.headers)
            return headers

        r = self._with_retries(operation.method, url, headers_for, data, timeout)
        payload = http.decode_json(r)

        result = PagedResult(data=payload, next_link=_next_link(payload))
        if isinstance(payload, dict) and isinstance(payload.get("value"), list):
            result.items = payload["value"]
        if page is not None:
            result.previous = page > 0
            result.next = result.next_link is not None
        return result

    def iter_pages(
        self,
        operation: Operation,
        page_size: Optional[int] = None,
        *,
        max_pages: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> Generator[PagedResult, None, None]:
        """
        Yield consecutive pages until the provider stops sending a
        continuation link.
        """
        page = 0
        while True:
            result = self.execute(operation, page=page, page_size=page_size, timeout=timeout)
            yield result
            page += 1
            if not result.next:
                return
            if max_pages is not None and page >= int(max_pages):
                return

    def execute_smlsvc(
        self,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        GET a semantic layer view (``sml.svc``) or any other auxiliary
        endpoint. Same session and retry rules, no paging, no body.
        """
        url = self._url(path)

        def headers_for(cookie: str) -> Dict[str, str]:
            merged = {"Cookie": cookie}
            merged.update(headers or {})
            return merged

        r = self._with_retries("GET", url, headers_for, None, timeout)
        return http.decode_json(r)

    # ---------------- batch ----------------

    def execute_batch(self, batch: BatchRequest, timeout: Optional[float] = None) -> BatchResult:
        """
        Send several operations in one ``$batch`` exchange.

        The body is encoded once; retries re-send it unchanged with the
        current session cookie.

        Returns
        -------
        BatchResult
            One record per response part, in response order
        """
        encoded = encode_batch(batch, self.sessions.base_url)
        url = self._url("$batch")

        def headers_for(cookie: str) -> Dict[str, str]:
            headers = {
                "Cookie": cookie,
                "Content-Type": encoded.content_type,
                "OData-Version": "4.0",
            }
            headers.update(batch.headers)
            return headers

        self.logger.debug(
            "Sending batch of %d operation(s), transactional=%s",
            len(batch.operations), batch.transactional,
        )
        r = self._with_retries("POST", url, headers_for, encoded.body, timeout)
        return decode_batch(r.text, inline_json=self.inline_json)

    # ---------------- verb wrappers ----------------

    def get(self, path: str, *, page: Optional[int] = None, page_size: Optional[int] = None,
            headers: Optional[Mapping[str, str]] = None, timeout: Optional[float] = None) -> PagedResult:
        return self.execute(Operation("GET", path, headers or {}), page, page_size, timeout)

    def post(self, path: str, body: Any = None, *, headers: Optional[Mapping[str, str]] = None,
             timeout: Optional[float] = None) -> PagedResult:
        return self.execute(Operation("POST", path, headers or {}, body), timeout=timeout)

    def put(self, path: str, body: Any = None, *, headers: Optional[Mapping[str, str]] = None,
            timeout: Optional[float] = None) -> PagedResult:
        return self.execute(Operation("PUT", path, headers or {}, body), timeout=timeout)

    def patch(self, path: str, body: Any = None, *, headers: Optional[Mapping[str, str]] = None,
              timeout: Optional[float] = None) -> PagedResult:
        return self.execute(Operation("PATCH", path, headers or {}, body), timeout=timeout)

    def delete(self, path: str, *, headers: Optional[Mapping[str, str]] = None,
               timeout: Optional[float] = None) -> PagedResult:
        return self.execute(Operation("DELETE", path, headers or {}), timeout=timeout)
