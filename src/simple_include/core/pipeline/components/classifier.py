from __future__ import annotations

"""
Content-Based File Classification.

Decides whether a file is text or binary by sniffing its bytes rather than
trusting its extension. A file is binary when the scanned region contains a
NUL byte or a byte sequence that is not valid UTF-8.
"""

import codecs
from typing import Optional

from simple_include.domain.render_errors import ClassifyError
from simple_include.domain.render_models import ClassifiedFile, FileKind
from simple_include.infra.fs import read_bytes

# -----------------------------------------------------------------------------
# CLASSIFICATION API
# -----------------------------------------------------------------------------

def classify(content: bytes, max_scan_bytes: Optional[int] = None) -> ClassifiedFile:
    """
    Tag raw bytes as Text or Binary.

    Args:
        content: Full file content.
        max_scan_bytes: If set (> 0), only this many leading bytes are examined.
                        A multi-byte character cut by the scan boundary does not
                        count as invalid.

    Returns:
        ClassifiedFile: The content wrapped with its detected kind.
    """
    truncated = bool(max_scan_bytes) and len(content) > max_scan_bytes
    sample = content[:max_scan_bytes] if truncated else content

    if b"\x00" in sample:
        return ClassifiedFile(FileKind.BINARY, content)

    decoder = codecs.getincrementaldecoder("utf-8")(errors="strict")
    try:
        decoder.decode(sample, final=not truncated)
    except UnicodeDecodeError:
        return ClassifiedFile(FileKind.BINARY, content)

    return ClassifiedFile(FileKind.TEXT, content)


def read_and_classify(path: str, max_scan_bytes: Optional[int] = None) -> ClassifiedFile:
    """
    Read a file from disk and classify it.

    Raises:
        ClassifyError: If the file cannot be read.
    """
    try:
        content = read_bytes(path)
    except OSError as e:
        raise ClassifyError(path, e) from e
    return classify(content, max_scan_bytes)
