"""
sap_b1.batch - $batch wire protocol
====================================

- encode_batch / decode_batch: multipart codec
- BatchResponseScanner: line scanner behind decode_batch
- BatchRequest / BatchResult / BatchRecord: containers

"""

from sap_b1.batch.models import BatchRecord, BatchRequest, BatchResult, EncodedBatch
from sap_b1.batch.codec import (
    BatchResponseScanner,
    ScanState,
    decode_batch,
    detect_response_boundary,
    encode_batch,
    version_segment,
)

__all__ = [
    "BatchRecord",
    "BatchRequest",
    "BatchResult",
    "EncodedBatch",
    "BatchResponseScanner",
    "ScanState",
    "decode_batch",
    "detect_response_boundary",
    "encode_batch",
    "version_segment",
]
