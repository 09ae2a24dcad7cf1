"""MP3 frame decoder primitives."""

from .base import AbstractFrameDecoder
from .av_decoder import PyAvFrameDecoder
from .header import FrameHeader, parse_frame_header, find_sync, id3v2_tag_size

__all__ = [
    "AbstractFrameDecoder",
    "PyAvFrameDecoder",
    "FrameHeader",
    "parse_frame_header",
    "find_sync",
    "id3v2_tag_size",
]
