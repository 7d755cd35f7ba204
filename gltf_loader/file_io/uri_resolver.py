"""Buffer URI resolution for callers that load documents from disk.

The loader core never touches the file system; this module is what the
command-line linter hands it instead.
"""

import base64
import binascii
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from urllib.parse import unquote, urlparse

from ..exceptions import UriResolutionError
from ..models.document import Document

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = "data:"


def decode_data_uri(uri: str) -> bytes:
    """Decode an RFC 2397 ``data:`` URI."""
    header, sep, payload = uri[len(DATA_URI_PREFIX):].partition(",")
    if not sep:
        raise UriResolutionError(f"Malformed data URI (missing ','): {uri[:64]}")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise UriResolutionError(f"Invalid base64 payload in data URI: {e}") from e
    return unquote(payload).encode("latin-1")


def uri_to_path(uri: str, base_dir: Path) -> Path:
    """Convert a relative or file:// URI to a path under base_dir."""
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    if parsed.scheme:
        raise UriResolutionError(f"Unsupported URI scheme '{parsed.scheme}': {uri}")
    return base_dir / unquote(parsed.path)


class UriResolver:
    """Fetches buffer bytes for a document located in base_dir."""

    def __init__(self, base_dir: Path, max_bytes: Optional[int] = None):
        self.base_dir = Path(base_dir)
        self.max_bytes = max_bytes

    def fetch(self, uri: str) -> bytes:
        if uri.startswith(DATA_URI_PREFIX):
            return decode_data_uri(uri)

        path = uri_to_path(uri, self.base_dir)
        if not path.is_file():
            raise UriResolutionError(f"Referenced file not found: {path}")
        if self.max_bytes is not None and path.stat().st_size > self.max_bytes:
            raise UriResolutionError(
                f"Referenced file {path} is larger than the {self.max_bytes} byte limit"
            )
        try:
            return path.read_bytes()
        except OSError as e:
            raise UriResolutionError(f"Failed to read {path}: {e}") from e

    def resolve_buffers(self, document: Document) -> Tuple[Dict[int, bytes], List[str]]:
        """Return (buffer index -> bytes, failure messages).

        Buffers without a uri (the BIN chunk of a binary container) are left
        to the caller.
        """
        buffers: Dict[int, bytes] = {}
        failures: List[str] = []
        for idx, buffer in enumerate(document.buffers):
            if buffer.uri is None:
                continue
            try:
                data = self.fetch(buffer.uri)
            except UriResolutionError as e:
                logger.warning(f"buffer {idx}: {e}")
                failures.append(f"buffer {idx}: {e}")
                continue
            if len(data) < buffer.byte_length:
                failures.append(
                    f"buffer {idx}: uri provides {len(data)} bytes, byteLength is {buffer.byte_length}"
                )
                continue
            buffers[idx] = data
        return buffers, failures
