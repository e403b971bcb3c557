"""
Thumbnail export for vision requests.

The host renders thumbnails asynchronously and reports back through a
callback; the wait is bounded so a stuck render fails instead of hanging.
"""

from __future__ import annotations

import base64
import threading

from protocol.errors import ThumbnailTimeoutError

DEFAULT_SIZE = 512
DEFAULT_TIMEOUT = 5.0


def request_thumbnail_bytes(
    host,
    photo,
    size: int = DEFAULT_SIZE,
    timeout: float = DEFAULT_TIMEOUT,
) -> bytes:
    done = threading.Event()
    received: dict = {}

    def on_thumbnail(data):
        received["data"] = data
        done.set()

    host.request_thumbnail(photo, size, size, on_thumbnail)
    if not done.wait(timeout) or not received.get("data"):
        raise ThumbnailTimeoutError("Could not generate thumbnail (Timeout or Missing).")
    return received["data"]


def thumbnail_base64(host, photo, size: int = DEFAULT_SIZE, timeout: float = DEFAULT_TIMEOUT) -> str:
    data = request_thumbnail_bytes(host, photo, size=size, timeout=timeout)
    return base64.b64encode(data).decode("utf-8")
