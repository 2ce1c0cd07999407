"""
sap_b1.core.retry - Retry decision table
=========================================

Maps a failed Service Layer exchange to one of three outcomes. The attempt
counter is shared by every recoverable outcome of one call chain, so mixed
401/502 failures exhaust a single budget.
"""

from __future__ import annotations

import enum
from typing import Optional

from sap_b1.core.models import MAX_RETRIES


class RetryDecision(enum.Enum):
    FATAL = "fatal"
    RETRY_AFTER_RECONNECT = "retry_after_reconnect"
    RETRY_SAME = "retry_same"


class RetryPolicy:
    """
    Pure decision function for failed requests.

    Parameters
    ----------
    max_retries : int
        Number of retries allowed per call chain (default: 5)

    Examples
    --------
    >>> policy = RetryPolicy()
    >>> policy.decide(0, 502)
    <RetryDecision.RETRY_SAME: 'retry_same'>
    >>> policy.decide(5, 502)
    <RetryDecision.FATAL: 'fatal'>
    """

    def __init__(self, max_retries: int = MAX_RETRIES) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries

    def decide(
        self,
        attempt: int,
        status: Optional[int],
        *,
        allow_reconnect: bool = True,
    ) -> RetryDecision:
        """
        Decide what to do after a failure.

        Parameters
        ----------
        attempt : int
            Retries already performed in this call chain
        status : int or None
            HTTP status, None when no response was received
        allow_reconnect : bool
            False while logging in: a 401 there is final

        Returns
        -------
        RetryDecision
        """
        if status is None:
            return RetryDecision.FATAL
        if attempt >= self.max_retries:
            return RetryDecision.FATAL
        if status == 401 and allow_reconnect:
            return RetryDecision.RETRY_AFTER_RECONNECT
        if status == 502:
            return RetryDecision.RETRY_SAME
        return RetryDecision.FATAL
