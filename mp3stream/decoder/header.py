"""MPEG audio frame header and ID3 tag parsing.

Only what is needed to find frame boundaries: sync, version, layer,
bitrate, sample rate, padding and channel mode. Tags are recognised so they
can be skipped, never interpreted.
"""

from dataclasses import dataclass
from typing import Optional

HEADER_SIZE = 4
ID3V2_HEADER_SIZE = 10
ID3V1_TAG_SIZE = 128

_VERSIONS = {0b11: "1", 0b10: "2", 0b00: "2.5"}
_LAYERS = {0b11: 1, 0b10: 2, 0b01: 3}

# Bitrates in kbps indexed by the 4-bit header field. Index 0 is free format.
_BITRATES = {
    ("1", 1): (0, 32, 64, 96, 128, 160, 192, 224, 256, 288, 320, 352, 384, 416, 448),
    ("1", 2): (0, 32, 48, 56, 64, 80, 96, 112, 128, 160, 192, 224, 256, 320, 384),
    ("1", 3): (0, 32, 40, 48, 56, 64, 80, 96, 112, 128, 160, 192, 224, 256, 320),
    ("2", 1): (0, 32, 48, 56, 64, 80, 96, 112, 128, 144, 160, 176, 192, 224, 256),
    ("2", 2): (0, 8, 16, 24, 32, 40, 48, 56, 64, 80, 96, 112, 128, 144, 160),
    ("2", 3): (0, 8, 16, 24, 32, 40, 48, 56, 64, 80, 96, 112, 128, 144, 160),
}
_SAMPLE_RATES = {
    "1": (44100, 48000, 32000),
    "2": (22050, 24000, 16000),
    "2.5": (11025, 12000, 8000),
}


@dataclass
class FrameHeader:
    """Decoded fields of a 4-byte MPEG audio frame header."""
    version: str  # "1", "2" or "2.5"
    layer: int
    bitrate_kbps: int
    sample_rate: int
    padding: int
    channel_mode: int  # 0b11 is single channel

    @property
    def channels(self) -> int:
        return 1 if self.channel_mode == 0b11 else 2

    @property
    def samples_per_frame(self) -> int:
        if self.layer == 1:
            return 384
        if self.layer == 3 and self.version != "1":
            return 576
        return 1152

    @property
    def frame_length(self) -> int:
        """Total frame size in bytes, header included."""
        bitrate = self.bitrate_kbps * 1000
        if self.layer == 1:
            return (12 * bitrate // self.sample_rate + self.padding) * 4
        if self.layer == 3 and self.version != "1":
            return 72 * bitrate // self.sample_rate + self.padding
        return 144 * bitrate // self.sample_rate + self.padding

    def is_compatible(self, other: "FrameHeader") -> bool:
        """Whether two headers plausibly belong to the same stream."""
        return (self.version == other.version
                and self.layer == other.layer
                and self.sample_rate == other.sample_rate)


def parse_frame_header(data: bytes, offset: int = 0) -> Optional[FrameHeader]:
    """Parse the frame header at `offset`, or return None if there is none.

    Free-format bitrates and reserved field values are rejected.
    """
    if len(data) - offset < HEADER_SIZE:
        return None

    b0, b1, b2, b3 = data[offset:offset + HEADER_SIZE]
    if b0 != 0xFF or (b1 & 0xE0) != 0xE0:
        return None

    version = _VERSIONS.get((b1 >> 3) & 0b11)
    layer = _LAYERS.get((b1 >> 1) & 0b11)
    if version is None or layer is None:
        return None

    bitrate_idx = (b2 >> 4) & 0b1111
    samplerate_idx = (b2 >> 2) & 0b11
    if bitrate_idx == 0 or bitrate_idx == 0b1111 or samplerate_idx == 0b11:
        return None

    table_version = "1" if version == "1" else "2"
    return FrameHeader(
        version=version,
        layer=layer,
        bitrate_kbps=_BITRATES[(table_version, layer)][bitrate_idx],
        sample_rate=_SAMPLE_RATES[version][samplerate_idx],
        padding=(b2 >> 1) & 0b1,
        channel_mode=(b3 >> 6) & 0b11,
    )


def find_sync(data: bytes, start: int = 0) -> int:
    """Return the offset of the first valid frame header at or after `start`, or -1."""
    i = data.find(b"\xff", start)
    while i != -1 and i + HEADER_SIZE <= len(data):
        if parse_frame_header(data, i) is not None:
            return i
        i = data.find(b"\xff", i + 1)
    return -1


def id3v2_tag_size(data: bytes) -> Optional[int]:
    """Total size of an ID3v2 tag starting at offset 0, or None if there is none.

    The size field is a 4-byte synchsafe integer (7 bits per byte) that
    excludes the 10-byte header and the optional 10-byte footer.
    """
    if len(data) < ID3V2_HEADER_SIZE or data[:3] != b"ID3":
        return None

    size_bytes = data[6:10]
    if any(b & 0x80 for b in size_bytes):
        return None

    size = (
        ((size_bytes[0] & 0x7F) << 21)
        | ((size_bytes[1] & 0x7F) << 14)
        | ((size_bytes[2] & 0x7F) << 7)
        | (size_bytes[3] & 0x7F)
    )
    footer = ID3V2_HEADER_SIZE if data[5] & 0x10 else 0
    return ID3V2_HEADER_SIZE + size + footer


def is_id3v1_tag(data: bytes) -> bool:
    """Whether an ID3v1 tag starts at offset 0."""
    return data[:3] == b"TAG"
