"""Helpers for request parsing: URL decoding, argument lookup, MIME types."""

from __future__ import annotations

_MIME_TYPES: dict[str, str] = {
    "htm": "text/htm",
    "html": "text/html; charset=UTF-8",
    "css": "text/css",
    "js": "text/javascript",
    "txt": "text/plain",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "tpl": "text/html; charset=UTF-8",
}
_DEFAULT_MIME = "text/html"


def _as_bytes(value: str | bytes) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def _hex_value(ch: int) -> int:
    """Value of a hex digit; anything else counts as 0."""
    if 0x30 <= ch <= 0x39:
        return ch - 0x30
    if 0x41 <= ch <= 0x46:
        return ch - 0x41 + 10
    if 0x61 <= ch <= 0x66:
        return ch - 0x61 + 10
    return 0


def url_decode(value: str | bytes, max_len: int | None = None) -> bytes:
    """Percent-decode ``value`` ('+' becomes a space).

    At most ``max_len`` bytes are produced; decoding stops once that many
    have been written. An escape cut off by the end of input is dropped.
    """
    raw = _as_bytes(value)
    out = bytearray()
    state = 0
    escaped = 0
    for ch in raw:
        if max_len is not None and len(out) >= max_len:
            break
        if state == 1:
            escaped = _hex_value(ch) << 4
            state = 2
        elif state == 2:
            out.append((escaped + _hex_value(ch)) & 0xFF)
            state = 0
        elif ch == 0x25:  # '%'
            state = 1
        elif ch == 0x2B:  # '+'
            out.append(0x20)
        else:
            out.append(ch)
    return bytes(out)


def find_arg(line: str | bytes | None, arg: str | bytes,
             max_len: int | None = None) -> bytes | None:
    """Find ``arg`` in form-encoded ``line`` and return its decoded value.

    Scanning stops at a line break. Returns None when the argument is not
    present and an empty value when ``line`` itself is None.
    """
    if line is None:
        return b""
    text = _as_bytes(line)
    nul = text.find(b"\0")
    if nul >= 0:
        text = text[:nul]
    key = _as_bytes(arg) + b"="
    pos: int | None = 0
    while pos is not None and pos < len(text) and text[pos] not in b"\r\n":
        if text.startswith(key, pos):
            start = pos + len(key)
            end = text.find(b"&", start)
            if end < 0:
                end = len(text)
            return url_decode(text[start:end], max_len)
        amp = text.find(b"&", pos)
        pos = amp + 1 if amp >= 0 else None
    return None


def get_mimetype(url: str) -> str:
    """MIME type for ``url`` based on its extension (case sensitive)."""
    if not url:
        return _DEFAULT_MIME
    dot = url.rfind(".")
    ext = url[dot + 1:] if dot >= 0 else url
    return _MIME_TYPES.get(ext, _DEFAULT_MIME)