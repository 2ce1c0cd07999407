"""
sap_b1.batch.models - Batch request/response containers
========================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

from sap_b1.core.errors import ProtocolDecodeError
from sap_b1.core.models import Operation


@dataclass
class BatchRequest:
    """
    A group of operations sent in one ``$batch`` exchange.

    Parameters
    ----------
    operations : sequence of Operation
        Operations in the order they must run
    transactional : bool
        Wrap the operations in one changeset (all-or-nothing on the provider)
    headers : mapping
        Extra headers for the outer ``$batch`` request
    """
    operations: Sequence[Operation]
    transactional: bool = False
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.operations = list(self.operations)
        if not self.operations:
            raise ValueError("A batch needs at least one operation")


@dataclass(frozen=True)
class EncodedBatch:
    body: str
    boundary: str
    changeset_boundary: Optional[str] = None

    @property
    def content_type(self) -> str:
        return f"multipart/mixed;boundary={self.boundary}"


@dataclass
class BatchRecord:
    """
    One part of a decoded batch response.

    Attributes
    ----------
    content_id : str, optional
        Echoed ``Content-ID`` of the request part
    http_code : int, optional
        Status code of the part
    http_status : str, optional
        Reason phrase of the part
    body : any
        Decoded JSON body, None when the part had none
    error : ProtocolDecodeError, optional
        Set when the JSON body could not be parsed
    """
    content_id: Optional[str] = None
    http_code: Optional[int] = None
    http_status: Optional[str] = None
    body: Any = None
    error: Optional[ProtocolDecodeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.http_code is not None and 200 <= self.http_code < 300

    def is_empty(self) -> bool:
        return (
            self.content_id is None
            and self.http_code is None
            and self.http_status is None
            and self.body is None
            and self.error is None
        )


@dataclass
class BatchResult:
    """Ordered batch response records, one per operation."""
    records: List[BatchRecord] = field(default_factory=list)

    def __iter__(self) -> Iterator[BatchRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, index: int) -> BatchRecord:
        return self.records[index]

    def by_content_id(self) -> Dict[str, BatchRecord]:
        return {r.content_id: r for r in self.records if r.content_id is not None}

    def failed(self) -> List[BatchRecord]:
        return [r for r in self.records if not r.ok]
