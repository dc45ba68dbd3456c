import base64

import pytest

from esplink.base64dec import DecodeOverflowError, base64_decode


@pytest.mark.parametrize(
    "raw",
    [b"", b"a", b"ab", b"abc", b"user:secret", bytes(range(256)), b"\xff\x00\xfe"],
)
def test_round_trip_with_standard_encoder(raw):
    encoded = base64.b64encode(raw)
    assert base64_decode(encoded) == raw


def test_accepts_str_input():
    raw = b"admin:token"
    assert base64_decode(base64.b64encode(raw).decode("ascii")) == raw


def test_whitespace_is_skipped():
    raw = b"some longer text to split over lines"
    encoded = base64.encodebytes(raw)  # inserts newlines
    spaced = b" \t" + encoded.replace(b"A", b"A ") + b"\r\n"
    assert base64_decode(spaced) == raw


def test_stops_at_padding():
    first = base64.b64encode(b"ab")
    assert first.endswith(b"=")
    assert base64_decode(first + base64.b64encode(b"more")) == b"ab"


def test_stops_at_invalid_character():
    head = base64.b64encode(b"abc")
    assert base64_decode(head + b"!" + base64.b64encode(b"xyz")) == b"abc"


def test_high_bytes_stop_decoding():
    head = base64.b64encode(b"xyz")
    assert base64_decode(head + b"\xc3" + head) == b"xyz"


def test_exact_length_limit_is_allowed():
    raw = b"user:password"
    assert base64_decode(base64.b64encode(raw), len(raw)) == raw


def test_overflow_raises():
    raw = b"user:password"
    with pytest.raises(DecodeOverflowError):
        base64_decode(base64.b64encode(raw), len(raw) - 1)


def test_zero_limit_with_empty_input():
    assert base64_decode(b"", 0) == b""


def test_overflow_is_value_error():
    with pytest.raises(ValueError):
        base64_decode(base64.b64encode(b"abcdef"), 2)