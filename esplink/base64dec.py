"""Lenient one-shot base64 decoding as used for HTTP basic authentication."""

from __future__ import annotations

_ALPHABET = b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_DECODE = {ch: value for value, ch in enumerate(_ALPHABET)}
_WHITESPACE = frozenset(b" \t\n\v\f\r")


class DecodeOverflowError(ValueError):
    """Raised when the decoded output would exceed the allowed length."""


def base64_decode(data: str | bytes, max_len: int | None = None) -> bytes:
    """Decode base64 text.

    Whitespace is skipped; decoding stops at the first ``=`` or at the
    first character outside the alphabet. Raises DecodeOverflowError if
    more than ``max_len`` bytes would be produced.
    """
    if isinstance(data, str):
        data = data.encode("latin-1", errors="replace")
    out = bytearray()
    accumulator = 0
    bits = 0
    for ch in data:
        if ch in _WHITESPACE:
            continue
        if ch == ord("="):
            break
        value = _DECODE.get(ch)
        if value is None:
            break
        accumulator = ((accumulator << 6) | value) & 0xFFFFFFFF
        bits += 6
        if bits >= 8:
            bits -= 8
            if max_len is not None and len(out) >= max_len:
                raise DecodeOverflowError(
                    f"decoded data exceeds {max_len} bytes"
                )
            out.append((accumulator >> bits) & 0xFF)
    return bytes(out)