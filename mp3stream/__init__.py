"""mp3stream: streaming MP3 decoding with a bounded refill buffer."""

from .audio.session import Mp3DecodeSession, MIN_OUTPUT_BYTES
from .decoder.base import AbstractFrameDecoder
from .errors import Mp3StreamError, StreamIOError, OutputBufferTooSmallError
from .models.frame import FrameInfo, DecodedFrame, DecodeStats

__version__ = "0.1.0"

__all__ = [
    "Mp3DecodeSession",
    "MIN_OUTPUT_BYTES",
    "AbstractFrameDecoder",
    "Mp3StreamError",
    "StreamIOError",
    "OutputBufferTooSmallError",
    "FrameInfo",
    "DecodedFrame",
    "DecodeStats",
]
