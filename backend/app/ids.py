"""
ids.py — Object identifiers.

Every stored record is keyed by a 24-character lowercase hex string laid out
like a 12-byte document-store object id:

    4 bytes  seconds since the epoch, big-endian
    5 bytes  random value, fixed per process
    3 bytes  counter, starting at a random value

Ids created here interleave with ids already persisted by the document store
the data was migrated from, so existing references stay valid.
"""

from __future__ import annotations

import itertools
import re
import secrets
import time

OBJECT_ID_LENGTH = 24

_OBJECT_ID_RE = re.compile(r"[0-9a-fA-F]{24}")

_process_random = secrets.token_bytes(5)
_counter = itertools.count(secrets.randbelow(0xFFFFFF + 1))


def new_object_id() -> str:
    """Returns a fresh 24-char hex id."""
    timestamp = int(time.time()).to_bytes(4, "big")
    counter = (next(_counter) & 0xFFFFFF).to_bytes(3, "big")
    return (timestamp + _process_random + counter).hex()


def is_object_id(value) -> bool:
    """True if `value` is a string of exactly 24 hex digits (either case)."""
    return isinstance(value, str) and _OBJECT_ID_RE.fullmatch(value) is not None


def normalize_object_id(value: str) -> str | None:
    """Lower-cases a well-formed id; returns None for anything malformed."""
    if not is_object_id(value):
        return None
    return value.lower()
