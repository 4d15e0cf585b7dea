import pytest

from goline.errors import ReadError
from goline.events import ScoreEvent, Scorer, decode_payload, decode_reading, encode_payload


def test_decode_reading_uses_bytes_one_to_four_little_endian():
    assert decode_reading(bytes([0xFF, 0x01, 0x00, 0x00, 0x00])) == 1
    assert decode_reading(bytes([0x00, 0x78, 0x56, 0x34, 0x12, 0xAA])) == 0x12345678


def test_decode_reading_rejects_short_buffer():
    with pytest.raises(ReadError):
        decode_reading(bytes([1, 0, 0, 0]))


def test_encode_payload_is_compact_json():
    assert encode_payload(ScoreEvent(Scorer.HOME)) == b'{"scorer":"home"}'
    assert encode_payload(ScoreEvent(Scorer.GUEST)) == b'{"scorer":"guest"}'


def test_decode_payload_rejects_unknown_scorer():
    with pytest.raises(ValueError):
        decode_payload(b'{"scorer":"referee"}')
    with pytest.raises(ValueError):
        decode_payload(b'["home"]')
    with pytest.raises(ValueError):
        decode_payload(b"not json")


def test_score_event_is_immutable():
    event = ScoreEvent(Scorer.HOME)
    with pytest.raises(AttributeError):
        event.scorer = Scorer.GUEST
