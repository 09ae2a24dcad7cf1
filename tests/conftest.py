"""Pytest configuration and fixtures for mp3stream tests."""

import io
import logging
import tempfile

import numpy as np
import pytest

from mp3stream.decoder.base import AbstractFrameDecoder
from mp3stream.models.frame import DecodedFrame


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FakeFrameDecoder(AbstractFrameDecoder):
    """Deterministic frame decoder primitive for tests.

    Frame layout: b"F", channel count (1 byte), samples per channel
    (2 bytes big-endian), then interleaved little-endian int16 samples.
    A leading b"Z" answers "no sync" (0 samples, 0 bytes); any other byte
    is garbage and is stepped over one byte at a time.
    """

    def __init__(self, sample_rate: int = 44100, bitrate_kbps: int = 128):
        self.sample_rate = sample_rate
        self.bitrate_kbps = bitrate_kbps
        self.reset_count = 0
        self.calls = 0

    def decode_frame(self, data: bytes) -> DecodedFrame:
        self.calls += 1
        if not data or data[:1] == b"Z":
            return DecodedFrame(samples_per_channel=0, frame_byte_length=0)
        if data[:1] != b"F":
            return DecodedFrame(samples_per_channel=0, frame_byte_length=1)
        if len(data) < 4:
            return DecodedFrame(samples_per_channel=0, frame_byte_length=0)

        channels = data[1]
        samples = int.from_bytes(data[2:4], "big")
        if channels not in (1, 2) or samples == 0 or samples > 2304:
            return DecodedFrame(samples_per_channel=0, frame_byte_length=1)

        length = 4 + samples * channels * 2
        if len(data) < length:
            return DecodedFrame(samples_per_channel=0, frame_byte_length=0)

        pcm = np.frombuffer(data[4:length], dtype="<i2").astype(np.int16)
        return DecodedFrame(
            samples_per_channel=samples,
            frame_byte_length=length,
            sample_rate_hz=self.sample_rate,
            channel_count=channels,
            bitrate_kbps=self.bitrate_kbps,
            pcm=pcm,
        )

    def reset(self) -> None:
        self.reset_count += 1


class ChunkedStream(io.BytesIO):
    """In-memory byte stream that records reads and can return short reads."""

    def __init__(self, data: bytes, max_read: int = None):
        super().__init__(data)
        self.max_read = max_read
        self.read_calls = 0
        self.read_sizes = []

    def readinto(self, buffer) -> int:
        self.read_calls += 1
        view = memoryview(buffer)
        self.read_sizes.append(view.nbytes)
        if self.max_read is not None:
            view = view[:self.max_read]
        return super().readinto(view)


def build_frame(samples, channels: int = 2) -> bytes:
    """Encode interleaved samples in the FakeFrameDecoder frame layout."""
    samples = np.asarray(samples, dtype="<i2")
    per_channel = samples.size // channels
    return b"F" + bytes([channels]) + per_channel.to_bytes(2, "big") + samples.tobytes()


def stereo_frame(left: int, right: int, samples_per_channel: int = 100) -> bytes:
    """Frame whose every stereo pair is (left, right)."""
    pairs = np.tile(np.array([left, right], dtype=np.int16), samples_per_channel)
    return build_frame(pairs, channels=2)


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def fake_decoder():
    """Provides a fake frame decoder primitive."""
    return FakeFrameDecoder()


@pytest.fixture
def make_stream():
    """Factory for in-memory streams with read accounting."""
    def _make(data: bytes, max_read: int = None) -> ChunkedStream:
        return ChunkedStream(data, max_read=max_read)
    return _make


@pytest.fixture
def make_frame():
    """Factory for frames in the fake decoder's layout."""
    return build_frame


@pytest.fixture
def make_stereo_frame():
    """Factory for constant-valued stereo frames."""
    return stereo_frame


@pytest.fixture
def output_buffer():
    """Output buffer sized for the worst-case frame."""
    from mp3stream.audio.session import MIN_OUTPUT_BYTES
    return bytearray(MIN_OUTPUT_BYTES)


@pytest.fixture
def restore_root_logging():
    """Restore root logger handlers replaced by setup_logging."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


@pytest.fixture
def mp3_header():
    """Valid MPEG-1 Layer III header: 128kbps, 44.1kHz, stereo, 417-byte frames."""
    return b"\xff\xfb\x90\x00"
