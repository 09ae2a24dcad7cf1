"""Data models for mp3stream."""

from .frame import FrameInfo, DecodedFrame, DecodeStats
from .events import PcmEvent

__all__ = [
    "FrameInfo",
    "DecodedFrame",
    "DecodeStats",
    "PcmEvent",
]
