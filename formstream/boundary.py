from __future__ import annotations

import itertools
import logging
import os
import re
import threading
import time
import uuid

logger = logging.getLogger(__name__)

# RFC 2046 bchars; a boundary may not end with a space.
_BOUNDARY_RE = re.compile(r"[0-9A-Za-z'()+_,\-./:=? ]{0,69}[0-9A-Za-z'()+_,\-./:=?]")

_fallback_counter = itertools.count()
_fallback_lock = threading.Lock()


def _fallback_boundary() -> str:
    with _fallback_lock:
        seq = next(_fallback_counter)
    return (
        f"{time.time_ns() & 0xFFFFFFFFFFFFFFFF:016x}"
        f"{os.getpid() & 0xFFFFFFFF:08x}"
        f"{seq & 0xFFFFFFFF:08x}"
    )


def generate_boundary() -> str:
    """
    Return a fresh multipart boundary: 32 lowercase hex characters.

    Uses the OS entropy source. When it is unavailable a timestamp, the
    process id and a process-wide counter are used instead, so the call
    never fails and concurrent callers never share a value.
    """
    try:
        return uuid.uuid4().hex
    except NotImplementedError:
        logger.warning("os.urandom unavailable, using counter-based boundary")
        return _fallback_boundary()


def is_valid_boundary(boundary: str) -> bool:
    return isinstance(boundary, str) and _BOUNDARY_RE.fullmatch(boundary) is not None


def check_boundary(boundary: str) -> str:
    if not is_valid_boundary(boundary):
        raise ValueError(f"Invalid multipart boundary: {boundary!r}")
    return boundary
