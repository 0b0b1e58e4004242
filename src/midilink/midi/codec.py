"""
MIDI Message Codec

Packs MIDI short messages and sysex chunks into the 32-bit words used by the
native engine, and unpacks them again.

Word layout (least significant byte first on the wire):

    bits  0-7   status
    bits  8-15  data1
    bits 16-23  data2
    bits 24-31  unused for short messages, 4th byte for sysex chunks

A sysex message travels as a sequence of words, each carrying 4 bytes of the
message; only the first word carries the 0xF0 status byte. Real-time
messages (0xF8-0xFF) may arrive between sysex words and always occupy a full
word of their own with the status in the low byte. Their timestamps keep the
stream non-decreasing, but the byte order relative to the interrupted sysex
data is not preserved.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence

SYSEX = 0xF0
EOX = 0xF7

MAX_TIMESTAMP = 0xFFFFFFFF


def _check_byte(name: str, value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must be in 0..255, got {value}")


@dataclass(frozen=True)
class MidiMessage:
    """Three-byte MIDI short message. Data bytes default to zero."""

    status: int
    data1: int = 0
    data2: int = 0

    def __post_init__(self):
        _check_byte("status", self.status)
        _check_byte("data1", self.data1)
        _check_byte("data2", self.data2)

    @classmethod
    def from_bytes(cls, data: Sequence[int]) -> "MidiMessage":
        """Build a message from 1 to 3 raw bytes"""
        if not 1 <= len(data) <= 3:
            raise ValueError(f"short message needs 1 to 3 bytes, got {len(data)}")
        padded = list(data) + [0] * (3 - len(data))
        return cls(padded[0], padded[1], padded[2])

    @property
    def channel(self) -> int:
        return self.status & 0x0F

    def to_bytes(self) -> bytes:
        """Wire bytes, trimmed to the length implied by the status byte"""
        return bytes((self.status, self.data1, self.data2))[:message_length(self.status)]

    def __str__(self):
        return f"[{self.status:#04x} {self.data1:3d} {self.data2:3d}]"


@dataclass(frozen=True)
class MidiEvent:
    """A MIDI message with its timestamp in milliseconds"""

    message: MidiMessage
    timestamp: int = 0
    # Sysex chunks use all four bytes of the word; short messages leave it 0
    extra: int = 0

    def __post_init__(self):
        if not 0 <= self.timestamp <= MAX_TIMESTAMP:
            raise ValueError(f"timestamp must fit in 32 bits, got {self.timestamp}")
        _check_byte("extra", self.extra)

    @classmethod
    def from_word(cls, word: int, timestamp: int = 0) -> "MidiEvent":
        return cls(decode(word), timestamp, (word >> 24) & 0xFF)

    @property
    def word(self) -> int:
        return encode(self.message) | (self.extra << 24)

    @property
    def is_realtime(self) -> bool:
        return is_realtime(self.message.status)

    def __str__(self):
        return f"{self.timestamp:>10} {self.message}"


def encode(message: MidiMessage) -> int:
    """Pack a short message into a 32-bit word. The high byte is always zero."""
    return (
        ((message.data2 << 16) & 0xFF0000)
        | ((message.data1 << 8) & 0xFF00)
        | (message.status & 0xFF)
    )


def decode(word: int) -> MidiMessage:
    """Unpack the low three bytes of a word into a short message"""
    return MidiMessage(
        status=word & 0xFF,
        data1=(word >> 8) & 0xFF,
        data2=(word >> 16) & 0xFF,
    )


def unpack_word(word: int) -> bytes:
    """All four bytes of a word in wire order"""
    return (word & 0xFFFFFFFF).to_bytes(4, "little")


def pack_sysex(data: Iterable[int]) -> List[int]:
    """
    Split a sysex message into packed words.

    Args:
        data: Complete message, starting with 0xF0 and normally ending with 0xF7

    Returns:
        List of words, 4 bytes each, the last one zero padded
    """
    raw = bytes(data)
    if not raw or raw[0] != SYSEX:
        raise ValueError("sysex data must start with 0xF0")

    words = []
    for offset in range(0, len(raw), 4):
        chunk = raw[offset:offset + 4].ljust(4, b"\x00")
        words.append(int.from_bytes(chunk, "little"))
    return words


def is_realtime(status: int) -> bool:
    """True for single-byte real-time messages (clock, start, stop, ...)"""
    return (status & 0xF8) == 0xF8


def message_length(status: int) -> int:
    """Number of wire bytes of the short message starting with `status`"""
    if status < 0x80:
        # Running status data byte, passed through as a full message
        return 3
    if status < 0xC0 or 0xE0 <= status < 0xF0:
        return 3
    if status < 0xE0:
        return 2
    if status in (0xF1, 0xF3):
        return 2
    if status == 0xF2:
        return 3
    return 1
