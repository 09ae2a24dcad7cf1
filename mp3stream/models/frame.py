"""Frame and decode-statistics data models."""

from dataclasses import dataclass, field

import numpy as np


@dataclass
class FrameInfo:
    """Metadata of the most recently decoded frame."""
    sample_rate_hz: int = 0
    channel_count: int = 0
    bitrate_kbps: int = 0
    frame_byte_length: int = 0  # Bytes consumed from the input window


@dataclass
class DecodedFrame:
    """Result of one call into a frame decoder primitive.

    A `samples_per_channel` of 0 means the primitive only stepped over
    metadata, garbage or a corrupt sync; `frame_byte_length` says how far.
    """
    samples_per_channel: int
    frame_byte_length: int
    sample_rate_hz: int = 0
    channel_count: int = 0
    bitrate_kbps: int = 0
    pcm: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int16))  # Interleaved int16

    @property
    def info(self) -> FrameInfo:
        """Frame metadata in the form the session reports it."""
        return FrameInfo(
            sample_rate_hz=self.sample_rate_hz,
            channel_count=self.channel_count,
            bitrate_kbps=self.bitrate_kbps,
            frame_byte_length=self.frame_byte_length,
        )


@dataclass
class DecodeStats:
    """Decoding session statistics."""
    frames_decoded: int
    bytes_read: int
    bytes_skipped: int
    elapsed_seconds: float
    sample_rate: int
    channels: int
    bitrate_kbps: int
    volume: int
    mono: bool
    end_of_stream: bool
