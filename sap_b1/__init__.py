"""
SAP Business One Service Layer Python SDK (sap_b1)
==================================================

A Python client for the SAP Business One Service Layer with transparent
session renewal, retries, pagination and ``$batch`` support.

Usage
-----
>>> from sap_b1 import ConnectionContext, Operation, BatchRequest
>>>
>>> with ConnectionContext() as conn:
...     # Single call, first page of 50 items
...     page = conn.executor.get("Items?$select=ItemCode,ItemName", page=0, page_size=50)
...
...     # Two writes as one changeset
...     result = conn.executor.execute_batch(BatchRequest(
...         operations=[
...             Operation("PATCH", "Items('A001')", body={"ItemName": "Widget"}),
...             Operation("PATCH", "Items('A002')", body={"ItemName": "Gadget"}),
...         ],
...         transactional=True,
...     ))

Subpackages
-----------
- sap_b1.core: Session, retry policy, request execution and configuration
- sap_b1.batch: ``$batch`` multipart codec
- sap_b1.api: Optional FastAPI REST gateway

"""

__version__ = "0.1.0"

# Core exports - available at package root
from sap_b1.core import (
    AuthExpired,
    ConnectionContext,
    Credentials,
    Operation,
    PagedResult,
    ProtocolDecodeError,
    RequestExecutor,
    RequestRejected,
    RetryDecision,
    RetryPolicy,
    ServiceLayerConfig,
    ServiceLayerError,
    SessionManager,
    TransientGateway,
    TransportError,
    UpstreamError,
)

from sap_b1.batch import BatchRecord, BatchRequest, BatchResult

__all__ = [
    # Version
    "__version__",
    # Core
    "ConnectionContext",
    "Credentials",
    "ServiceLayerConfig",
    "SessionManager",
    "RequestExecutor",
    "RetryPolicy",
    "RetryDecision",
    "Operation",
    "PagedResult",
    # Errors
    "ServiceLayerError",
    "TransportError",
    "UpstreamError",
    "AuthExpired",
    "TransientGateway",
    "RequestRejected",
    "ProtocolDecodeError",
    # Batch
    "BatchRequest",
    "BatchResult",
    "BatchRecord",
]
