"""
sap_b1.api.gateway - FastAPI Service Layer Gateway
===================================================

Optional REST API gateway exposing one shared Service Layer session.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from sap_b1.batch.models import BatchRequest
from sap_b1.core.connection import ConnectionContext
from sap_b1.core.errors import ServiceLayerError, TransportError
from sap_b1.core.executor import RequestExecutor
from sap_b1.core.models import Operation
from sap_b1.api.models import (
    BatchRecordModel,
    BatchRequestModel,
    BatchResponseModel,
    ExecuteRequest,
    ExecuteResponse,
    OperationModel,
)


class ServiceLayerGateway:
    """
    Configuration and executor factory for the API gateway.

    Reads configuration from environment variables by default. The executor
    (and so the Service Layer session) is created once and shared by every
    request.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        connection: Optional[ConnectionContext] = None,
        executor: Optional[RequestExecutor] = None,
    ) -> None:
        self.api_key = api_key or os.environ.get("SAP_B1_API_KEY", "")
        self._connection = connection
        self._executor = executor

    def validate(self) -> None:
        """Validate configuration. Raises RuntimeError if invalid."""
        if not self.api_key:
            raise RuntimeError("Missing SAP_B1_API_KEY - required for security")
        if self._executor is None and self._connection is None:
            try:
                self._connection = ConnectionContext()
            except ValueError as exc:
                raise RuntimeError(str(exc)) from exc

    @property
    def executor(self) -> RequestExecutor:
        if self._executor is None:
            if self._connection is None:
                self._connection = ConnectionContext()
            self._executor = self._connection.executor
        return self._executor

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
        self._executor = None


# Global gateway instance (lazy init)
_gateway: Optional[ServiceLayerGateway] = None


def get_gateway() -> ServiceLayerGateway:
    """Get or create the global gateway instance."""
    global _gateway
    if _gateway is None:
        _gateway = ServiceLayerGateway()
    return _gateway


def _to_operation(model: OperationModel) -> Operation:
    return Operation(model.method, model.path, dict(model.headers), model.body)


def _upstream_failure(exc: ServiceLayerError) -> HTTPException:
    if isinstance(exc, TransportError):
        return HTTPException(
            status_code=504,
            detail={"url": exc.url, "error": str(exc)},
        )
    return HTTPException(
        status_code=502,
        detail={
            "upstream_status": getattr(exc, "status", None),
            "url": getattr(exc, "url", None),
            "error": str(exc),
        },
    )


def create_app(
    gateway: Optional[ServiceLayerGateway] = None,
    validate_on_startup: bool = True,
) -> FastAPI:
    """
    Create the FastAPI application.

    Parameters
    ----------
    gateway : ServiceLayerGateway, optional
        Custom gateway configuration. If None, reads from environment.
    validate_on_startup : bool
        If True, validate configuration on startup.

    Returns
    -------
    FastAPI
        Configured FastAPI application
    """
    global _gateway

    _gateway = gateway or ServiceLayerGateway()

    if validate_on_startup:
        try:
            _gateway.validate()
        except RuntimeError:
            # Allow app creation without validation for testing
            pass

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        get_gateway().close()

    app = FastAPI(
        title="SAP Business One Service Layer Gateway",
        description="Pass-through gateway for single, paged and batch Service Layer calls. "
                    "Include your API key in the `x-api-key` header.",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def require_api_key(x_api_key: str = Header(...)) -> None:
        gw = get_gateway()
        if not gw.api_key:
            raise HTTPException(status_code=503, detail="Gateway not configured: SAP_B1_API_KEY is unset")
        if x_api_key != gw.api_key:
            raise HTTPException(status_code=401, detail="Invalid API key")

    @app.get("/health")
    def health() -> Dict[str, Any]:
        """Health check endpoint."""
        return {"ok": True, "version": "0.1.0"}

    @app.post("/execute", response_model=ExecuteResponse)
    def execute(req: ExecuteRequest, _: None = Depends(require_api_key)) -> ExecuteResponse:
        """Execute one Service Layer operation, optionally paged."""
        try:
            result = get_gateway().executor.execute(
                _to_operation(req),
                page=req.page,
                page_size=req.page_size,
                timeout=req.timeout,
            )
        except ServiceLayerError as e:
            raise _upstream_failure(e)
        return ExecuteResponse(
            items=result.items,
            previous=result.previous,
            next=result.next,
            next_link=result.next_link,
            data=result.data,
        )

    @app.post("/batch", response_model=BatchResponseModel)
    def batch(req: BatchRequestModel, _: None = Depends(require_api_key)) -> BatchResponseModel:
        """Send several operations in one $batch exchange."""
        batch_request = BatchRequest(
            operations=[_to_operation(op) for op in req.operations],
            transactional=req.transaction,
            headers=dict(req.headers),
        )
        try:
            result = get_gateway().executor.execute_batch(batch_request, timeout=req.timeout)
        except ServiceLayerError as e:
            raise _upstream_failure(e)
        records = [
            BatchRecordModel(
                content_id=r.content_id,
                http_code=r.http_code,
                http_status=r.http_status,
                body=r.body,
                error=str(r.error) if r.error else None,
            )
            for r in result
        ]
        return BatchResponseModel(count=len(records), records=records)

    @app.get("/smlsvc/{path:path}")
    def smlsvc(path: str, request: Request, _: None = Depends(require_api_key)) -> Any:
        """GET an auxiliary endpoint (e.g. ``sml.svc/ItemView``) relative to the service root."""
        target = f"{path}?{request.url.query}" if request.url.query else path
        try:
            return get_gateway().executor.execute_smlsvc(target)
        except ServiceLayerError as e:
            raise _upstream_failure(e)

    return app
