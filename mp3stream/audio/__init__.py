"""Streaming MP3 decoding and PCM processing module."""

from .session import Mp3DecodeSession, MIN_OUTPUT_BYTES
from .pcm_pub import PcmPublisher

__all__ = [
    'Mp3DecodeSession',
    'MIN_OUTPUT_BYTES',
    'PcmPublisher'
]
