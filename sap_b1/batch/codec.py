"""
sap_b1.batch.codec - Service Layer $batch wire format
======================================================

Stateless encoder/decoder for the multipart ``$batch`` protocol:

- encode_batch: operations -> multipart/mixed body (optionally one changeset)
- decode_batch: multipart response text -> ordered BatchRecords

The response side is a line scanner with three named states. JSON bodies are
only recognized when the opening and closing braces sit alone on their own
line, which is how the Service Layer pretty-prints them; ``inline_json=True``
additionally accepts single-line objects.
"""

from __future__ import annotations

import enum
import json
import logging
import re
import uuid
from typing import List

from sap_b1.batch.models import BatchRecord, BatchRequest, BatchResult, EncodedBatch
from sap_b1.core.errors import ProtocolDecodeError
from sap_b1.core.models import Operation

logger = logging.getLogger("sap_b1.batch")

DEFAULT_VERSION_SEGMENT = "/b1s/v1"
CHANGESET_RESPONSE_MARKER = "--changesetresponse"
BATCH_RESPONSE_MARKER = "--batchresponse"

_VERSION_RE = re.compile(r"/b1s/v[0-9]+")
_CONTENT_ID_RE = re.compile(r"^Content-ID: (\d+)$")
_STATUS_LINE_RE = re.compile(r"^HTTP/\d+(?:\.\d+)? (\d{3})(?: (.*))?$")


def new_boundary(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4()}"


def version_segment(base_url: str) -> str:
    """
    Extract the versioned service root from a base URL.

    Examples
    --------
    >>> version_segment("https://host:50000/b1s/v2")
    '/b1s/v2/'
    >>> version_segment("https://host:50000/")
    '/b1s/v1/'
    """
    match = _VERSION_RE.search(base_url or "")
    segment = match.group(0) if match else DEFAULT_VERSION_SEGMENT
    return segment if segment.endswith("/") else f"{segment}/"


# ---------------- encoding ----------------

def _part_lines(operation: Operation, content_id: int, root: str) -> List[str]:
    lines = [
        "Content-Type: application/http",
        "Content-Transfer-Encoding: binary",
        f"Content-ID: {content_id}",
        "",
        f"{operation.method} {root}{operation.path.lstrip('/')}",
    ]
    lines.extend(f"{key}: {value}" for key, value in operation.headers.items())
    lines.append("")
    if operation.body is not None:
        lines.append(json.dumps(operation.body, separators=(",", ":")))
        lines.append("")
    return lines


def encode_batch(batch: BatchRequest, base_url: str) -> EncodedBatch:
    """
    Render a batch request as a multipart/mixed body.

    Parameters
    ----------
    batch : BatchRequest
        Operations to send
    base_url : str
        Service root; its ``/b1s/v<n>`` segment prefixes every part path

    Returns
    -------
    EncodedBatch
        Body text plus the generated boundary tokens
    """
    boundary = new_boundary("batch")
    changeset = new_boundary("changeset") if batch.transactional else None
    root = version_segment(base_url)

    lines: List[str] = []
    for index, operation in enumerate(batch.operations, start=1):
        if changeset:
            if index == 1:
                lines.append(f"--{boundary}")
                lines.append(f"Content-Type: multipart/mixed;boundary={changeset}")
                lines.append("")
            lines.append(f"--{changeset}")
        else:
            lines.append(f"--{boundary}")
        lines.extend(_part_lines(operation, index, root))

    if changeset:
        lines.append(f"--{changeset}--")
    lines.append(f"--{boundary}--")

    return EncodedBatch(
        body="\n".join(lines) + "\n",
        boundary=boundary,
        changeset_boundary=changeset,
    )


# ---------------- decoding ----------------

def detect_response_boundary(text: str) -> str:
    """
    Pick the delimiter the provider used for the response parts.

    The Service Layer names its boundaries ``changesetresponse_*`` and
    ``batchresponse_*`` regardless of the tokens the client generated.
    """
    if CHANGESET_RESPONSE_MARKER in text:
        return CHANGESET_RESPONSE_MARKER
    return BATCH_RESPONSE_MARKER


class ScanState(enum.Enum):
    SEEKING_BOUNDARY = "seeking_boundary"
    READING_HEADERS = "reading_headers"
    READING_BODY = "reading_body"


class BatchResponseScanner:
    """
    Line scanner turning a batch response into records.

    Parameters
    ----------
    marker : str
        Delimiter prefix, see ``detect_response_boundary``
    inline_json : bool
        Also accept a JSON object written on a single line

    Examples
    --------
    >>> scanner = BatchResponseScanner("--batchresponse")
    >>> for line in text.splitlines():
    ...     scanner.feed(line)
    >>> records = scanner.finish()
    """

    def __init__(self, marker: str, *, inline_json: bool = False) -> None:
        self.marker = marker
        self.inline_json = inline_json
        self.state = ScanState.SEEKING_BOUNDARY
        self.records: List[BatchRecord] = []
        self._current = BatchRecord()
        self._body_lines: List[str] = []

    def feed(self, line: str) -> None:
        if line.startswith(self.marker):
            if self.state is ScanState.READING_BODY:
                self._close_body()
            self._flush()
            self.state = ScanState.READING_HEADERS
            return

        if self.state is ScanState.READING_HEADERS:
            self._read_header(line)
        elif self.state is ScanState.READING_BODY:
            self._body_lines.append(line)
            if line == "}":
                self._close_body()

    def finish(self) -> List[BatchRecord]:
        if self.state is ScanState.READING_BODY:
            self._close_body()
        self._flush()
        return self.records

    def _read_header(self, line: str) -> None:
        m = _CONTENT_ID_RE.match(line)
        if m:
            self._current.content_id = m.group(1)
            return
        m = _STATUS_LINE_RE.match(line)
        if m:
            self._current.http_code = int(m.group(1))
            self._current.http_status = m.group(2) or ""
            return
        if line == "{":
            self._body_lines = [line]
            self.state = ScanState.READING_BODY
            return
        if self.inline_json and line.startswith("{") and line.endswith("}"):
            self._body_lines = [line]
            self._close_body()

    def _close_body(self) -> None:
        raw = "\n".join(self._body_lines)
        self._body_lines = []
        self.state = ScanState.SEEKING_BOUNDARY
        try:
            self._current.body = json.loads(raw)
        except ValueError as exc:
            logger.warning("Undecodable JSON in batch part %s: %s", self._current.content_id, exc)
            self._current.error = ProtocolDecodeError(raw, str(exc))

    def _flush(self) -> None:
        if not self._current.is_empty():
            self.records.append(self._current)
        self._current = BatchRecord()
        self._body_lines = []


def decode_batch(text: str, *, inline_json: bool = False) -> BatchResult:
    """
    Parse a ``$batch`` response body.

    Parameters
    ----------
    text : str
        Raw multipart response text
    inline_json : bool
        Also accept single-line JSON bodies

    Returns
    -------
    BatchResult
        Records in the order they appear in the response
    """
    scanner = BatchResponseScanner(detect_response_boundary(text or ""), inline_json=inline_json)
    for line in (text or "").splitlines():
        scanner.feed(line)
    return BatchResult(records=scanner.finish())
