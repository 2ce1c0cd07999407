"""
sap_b1.core - Core connectivity and session handling
=====================================================

This module provides the foundational classes for talking to the Service Layer:

- Credentials / ServiceLayerConfig: login and connection configuration
- SessionManager: login, re-login and logout, cookie ownership
- RetryPolicy: 401/502 retry decision table
- RequestExecutor: single, paged, auxiliary and batch requests
- ConnectionContext: environment driven connection manager

"""

from sap_b1.core.errors import (
    ServiceLayerError,
    TransportError,
    UpstreamError,
    AuthExpired,
    TransientGateway,
    RequestRejected,
    ProtocolDecodeError,
)
from sap_b1.core.models import (
    Credentials,
    ServiceLayerConfig,
    Session,
    Operation,
    PagedResult,
)
from sap_b1.core.retry import RetryDecision, RetryPolicy
from sap_b1.core.session import SessionManager
from sap_b1.core.executor import RequestExecutor
from sap_b1.core.connection import ConnectionContext

__all__ = [
    "ServiceLayerError",
    "TransportError",
    "UpstreamError",
    "AuthExpired",
    "TransientGateway",
    "RequestRejected",
    "ProtocolDecodeError",
    "Credentials",
    "ServiceLayerConfig",
    "Session",
    "Operation",
    "PagedResult",
    "RetryDecision",
    "RetryPolicy",
    "SessionManager",
    "RequestExecutor",
    "ConnectionContext",
]
