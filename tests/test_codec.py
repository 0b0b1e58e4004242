"""
Message codec tests
"""

import pytest

from midilink.midi.codec import (
    MidiEvent,
    MidiMessage,
    decode,
    encode,
    is_realtime,
    message_length,
    pack_sysex,
    unpack_word,
)


def test_encode_places_bytes_low_to_high():
    """Status in the low byte, then data1, then data2, high byte zero"""
    word = encode(MidiMessage(0x90, 60, 100))
    assert word == 0x00643C90
    assert unpack_word(word) == bytes([0x90, 60, 100, 0x00])


def test_decode_ignores_high_byte():
    assert decode(0xFF643C90) == MidiMessage(0x90, 60, 100)


@pytest.mark.parametrize("status,data1,data2", [
    (0x00, 0x00, 0x00),
    (0x80, 0x7F, 0x00),
    (0xB5, 74, 127),
    (0xFF, 0xFF, 0xFF),
])
def test_round_trip_over_byte_range(status, data1, data2):
    message = MidiMessage(status, data1, data2)
    assert decode(encode(message)) == message


def test_round_trip_every_status_byte():
    for status in range(256):
        message = MidiMessage(status, status ^ 0x55, 255 - status)
        assert decode(encode(message)) == message


def test_message_rejects_values_outside_a_byte():
    with pytest.raises(ValueError):
        MidiMessage(256)
    with pytest.raises(ValueError):
        MidiMessage(0x90, -1, 0)


def test_message_from_bytes_pads_missing_data():
    assert MidiMessage.from_bytes([0xC0, 5]) == MidiMessage(0xC0, 5, 0)
    assert MidiMessage.from_bytes(b"\xf8") == MidiMessage(0xF8, 0, 0)
    with pytest.raises(ValueError):
        MidiMessage.from_bytes([])


def test_to_bytes_trims_by_status():
    assert MidiMessage(0x90, 60, 100).to_bytes() == b"\x90\x3c\x64"
    assert MidiMessage(0xC3, 12, 0).to_bytes() == b"\xc3\x0c"
    assert MidiMessage(0xF8).to_bytes() == b"\xf8"


def test_message_channel():
    assert MidiMessage(0x9A, 60, 100).channel == 10


def test_event_word_keeps_fourth_sysex_byte():
    event = MidiEvent.from_word(0xF7030201, timestamp=42)
    assert event.message == MidiMessage(0x01, 0x02, 0x03)
    assert event.extra == 0xF7
    assert event.word == 0xF7030201
    assert event.timestamp == 42


def test_event_timestamp_must_fit_32_bits():
    MidiEvent(MidiMessage(0x90), 0xFFFFFFFF)
    with pytest.raises(ValueError):
        MidiEvent(MidiMessage(0x90), 0x100000000)
    with pytest.raises(ValueError):
        MidiEvent(MidiMessage(0x90), -1)


def test_pack_sysex_chunks_four_bytes_per_word():
    data = bytes([0xF0, 0x7E, 0x7F, 0x06, 0x01, 0xF7])
    words = pack_sysex(data)
    assert words == [0x067F7EF0, 0x0000F701]
    assert b"".join(unpack_word(w) for w in words)[:len(data)] == data


def test_pack_sysex_requires_sysex_status():
    with pytest.raises(ValueError):
        pack_sysex(b"\x90\x3c\x64")


def test_realtime_detection():
    assert is_realtime(0xF8)
    assert is_realtime(0xFE)
    assert not is_realtime(0xF7)
    assert not is_realtime(0x90)
    assert MidiEvent(MidiMessage(0xFA)).is_realtime


@pytest.mark.parametrize("status,length", [
    (0x80, 3), (0x9F, 3), (0xB0, 3), (0xC0, 2), (0xD5, 2), (0xE0, 3),
    (0xF1, 2), (0xF2, 3), (0xF3, 2), (0xF6, 1), (0xF8, 1),
])
def test_message_length(status, length):
    assert message_length(status) == length
