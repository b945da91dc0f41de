"""Browser fingerprint token sent as the ``v`` cookie and ``Hexin-V`` header.

The record is a fixed table of integer fields, each written least significant
byte first in its declared width. A rolling checksum over those bytes is
prepended together with a constant version byte, and the result is base64
encoded. This mirrors the public shape of the token only; whether a given
token passes the provider's own validation is not guaranteed.
"""

from __future__ import annotations

import base64
import itertools
import secrets
import threading
import time

VERSION_BYTE = 86

# Byte width of each field, in serialization order.
FIELD_WIDTHS = (4, 4, 4, 4, 1, 1, 1, 3, 2, 2, 2, 2, 2, 2, 2, 4, 2, 1)

SERVER_TIME = 0
NONCE = 1
CLIENT_TIME = 2
UA_HASH = 6
PLUGIN_COUNT = 9
BROWSER_FEATURE = 10
BROWSER_INDEX = 11
PLATFORM = 12
COUNTER = 13
FEATURE_MASK = 14
STATE = 15

TOKEN_LENGTH = 4 * (1 + 4 + sum(FIELD_WIDTHS)) // 3


def strhash(text: str) -> int:
    """32-bit ``h = h * 31 + ord(c)`` string hash."""
    value = 0
    for char in text:
        value = ((value << 5) - value + ord(char)) & 0xFFFFFFFF
    return value


def checksum(data: bytes) -> int:
    value = 0
    for byte in data:
        value = ((value << 5) - value + byte) & 0xFFFFFFFF
    return value


def serialize(fields: list[int]) -> bytes:
    """Pack ``fields`` LSB-first; values wider than their slot are truncated."""
    if len(fields) != len(FIELD_WIDTHS):
        raise ValueError(f"expected {len(FIELD_WIDTHS)} fields, got {len(fields)}")
    buffer = bytearray()
    for value, width in zip(fields, FIELD_WIDTHS):
        buffer.extend((value & ((1 << (8 * width)) - 1)).to_bytes(width, "little"))
    return bytes(buffer)


def encode(fields: list[int]) -> str:
    body = serialize(fields)
    header = bytes([VERSION_BYTE]) + checksum(body).to_bytes(4, "little")
    return base64.b64encode(header + body).decode("ascii")


class FingerprintTokenGenerator:
    """Produces a new token on every :meth:`update` call.

    Consecutive tokens differ through a monotonic counter and a fresh nonce.
    """

    def __init__(self, user_agent: str, server_time: int | None = None, clock=time.time):
        self._clock = clock
        self._server_time = int(server_time if server_time is not None else clock())
        self._counter = itertools.count(1)
        self._lock = threading.Lock()
        self._fields = [0] * len(FIELD_WIDTHS)
        self._fields[UA_HASH] = strhash(user_agent)
        self._fields[PLUGIN_COUNT] = 5
        self._fields[BROWSER_FEATURE] = 3812
        self._fields[BROWSER_INDEX] = 10
        self._fields[PLATFORM] = 7
        self._fields[FEATURE_MASK] = 63

    def update(self) -> str:
        with self._lock:
            fields = list(self._fields)
            fields[COUNTER] = next(self._counter)
        fields[SERVER_TIME] = self._server_time
        fields[NONCE] = secrets.randbelow(10000)
        fields[CLIENT_TIME] = int(self._clock())
        fields[STATE] = 0
        return encode(fields)
