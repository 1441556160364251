"""
Content-addressed image storage.

Listing images are referenced by opaque strings. Uploaded bytes are stored
under "sha256:<hex digest>", so the same bytes always get the same reference.
"""

import base64
import binascii
import hashlib
import logging
import threading
from typing import Dict, Optional, Tuple

from errors import NotFound, ValidationError

logger = logging.getLogger(__name__)

REF_PREFIX = "sha256:"


class MediaStore:
    def __init__(self, max_bytes: int = 5 * 1024 * 1024):
        self.max_bytes = max_bytes
        self._blobs: Dict[str, Tuple[bytes, str]] = {}
        self._lock = threading.Lock()

    def put(self, data: bytes, mime_type: str) -> str:
        if not data:
            raise ValidationError("Empty upload")
        if len(data) > self.max_bytes:
            raise ValidationError(f"Upload exceeds {self.max_bytes} bytes")
        if not mime_type.startswith("image/"):
            raise ValidationError("Only image uploads are accepted")
        ref = REF_PREFIX + hashlib.sha256(data).hexdigest()
        with self._lock:
            if ref not in self._blobs:
                self._blobs[ref] = (data, mime_type)
                logger.info(f"Stored {len(data)} bytes as {ref}")
        return ref

    def put_base64(self, content: str, mime_type: str) -> str:
        try:
            data = base64.b64decode(content, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("Invalid base64 content")
        return self.put(data, mime_type)

    def get(self, ref: str) -> Tuple[bytes, str]:
        blob: Optional[Tuple[bytes, str]] = self._blobs.get(ref)
        if blob is None:
            raise NotFound("Media", ref)
        return blob

    def __contains__(self, ref: str) -> bool:
        return ref in self._blobs

    def clear(self) -> None:
        with self._lock:
            self._blobs.clear()
