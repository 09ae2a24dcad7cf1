"""MP3 frame decoder primitive backed by PyAV (FFmpeg bindings).

Frame boundaries are found here from the MPEG headers; PyAV only ever sees one
complete frame per packet, so the caller's input window fully determines how
many bytes each call consumes.
"""

import logging
from typing import Tuple

import av
import numpy as np
from av.error import FFmpegError

from .base import AbstractFrameDecoder
from .header import (
    HEADER_SIZE,
    ID3V1_TAG_SIZE,
    find_sync,
    id3v2_tag_size,
    is_id3v1_tag,
    parse_frame_header,
)
from ..models.frame import DecodedFrame

logger = logging.getLogger(__name__)

# FFmpeg decoder name per MPEG audio layer
_CODEC_NAMES = {1: "mp1", 2: "mp2", 3: "mp3"}


def _empty_pcm() -> np.ndarray:
    return np.zeros(0, dtype=np.int16)


def _to_interleaved_int16(frame) -> Tuple[np.ndarray, int]:
    """Convert a decoded PyAV audio frame to interleaved int16 samples."""
    channels = len(frame.layout.channels)
    array = frame.to_ndarray()

    if frame.format.is_planar:
        array = array.T  # (channels, samples) -> (samples, channels)
    else:
        array = array.reshape(-1, channels)

    if np.issubdtype(array.dtype, np.floating):
        array = np.clip(array, -1.0, 1.0) * 32767.0
    elif array.dtype == np.int32:
        array = array >> 16

    return np.ascontiguousarray(array).astype(np.int16).ravel(), channels


class PyAvFrameDecoder(AbstractFrameDecoder):
    """Frame decoder primitive: tag/garbage skipping plus PyAV frame decoding.

    Usage:
        decoder = PyAvFrameDecoder()
        result = decoder.decode_frame(window)
        # consume result.frame_byte_length bytes of window
    """

    def __init__(self):
        """Initialize MP3 codec context."""
        self._codec = None
        self._codec_layer = None
        self._skip_remaining = 0  # Tail of a tag larger than the input window
        self._synced = False
        self.reset()

    def reset(self) -> None:
        self._open_codec(3)
        self._skip_remaining = 0
        self._synced = False
        logger.debug("PyAV MP3 codec context reset")

    def _open_codec(self, layer: int) -> None:
        """Internal method: create a codec context for an MPEG audio layer."""
        self._codec = av.CodecContext.create(_CODEC_NAMES[layer], "r")
        self._codec_layer = layer

    def decode_frame(self, data: bytes) -> DecodedFrame:
        if not data:
            return DecodedFrame(samples_per_channel=0, frame_byte_length=0)

        if self._skip_remaining:
            step = min(self._skip_remaining, len(data))
            self._skip_remaining -= step
            return DecodedFrame(samples_per_channel=0, frame_byte_length=step)

        tag_size = id3v2_tag_size(data)
        if tag_size is not None:
            step = min(tag_size, len(data))
            self._skip_remaining = tag_size - step
            logger.debug(f"Skipping ID3v2 tag: {tag_size} bytes")
            return DecodedFrame(samples_per_channel=0, frame_byte_length=step)

        if is_id3v1_tag(data):
            logger.debug("Skipping ID3v1 tag")
            return DecodedFrame(samples_per_channel=0, frame_byte_length=min(ID3V1_TAG_SIZE, len(data)))

        offset = find_sync(data)
        tag_offset = data.find(b"ID3")
        if tag_offset > 0 and (offset < 0 or tag_offset < offset):
            return DecodedFrame(samples_per_channel=0, frame_byte_length=tag_offset)
        if offset < 0:
            # Keep the last bytes: they may be the start of a header.
            return DecodedFrame(samples_per_channel=0,
                                frame_byte_length=max(len(data) - (HEADER_SIZE - 1), 0))
        if offset > 0:
            logger.debug(f"Skipping {offset} bytes of garbage before sync")
            return DecodedFrame(samples_per_channel=0, frame_byte_length=offset)

        header = parse_frame_header(data)
        frame_length = header.frame_length
        if frame_length > len(data):
            return DecodedFrame(samples_per_channel=0, frame_byte_length=0)

        if not self._synced and len(data) >= frame_length + HEADER_SIZE:
            following = parse_frame_header(data, frame_length)
            if following is None or not following.is_compatible(header):
                # False sync: the next frame does not line up.
                return DecodedFrame(samples_per_channel=0, frame_byte_length=1)
        self._synced = True

        if header.layer != self._codec_layer:
            logger.info(f"Switching to MPEG layer {header.layer} decoder")
            self._open_codec(header.layer)

        pcm, channels = self._decode_packet(data[:frame_length], header.channels)
        return DecodedFrame(
            samples_per_channel=pcm.size // channels if channels else 0,
            frame_byte_length=frame_length,
            sample_rate_hz=header.sample_rate,
            channel_count=channels,
            bitrate_kbps=header.bitrate_kbps,
            pcm=pcm,
        )

    def _decode_packet(self, frame_data: bytes, header_channels: int) -> Tuple[np.ndarray, int]:
        """Internal method: run one complete frame through the codec."""
        try:
            frames = self._codec.decode(av.Packet(frame_data))
        except FFmpegError as e:
            logger.warning(f"Error decoding MP3 frame, skipping: {e}")
            return _empty_pcm(), header_channels

        chunks = []
        channels = header_channels
        for frame in frames:
            pcm, channels = _to_interleaved_int16(frame)
            chunks.append(pcm)

        if not chunks:
            return _empty_pcm(), channels
        return np.concatenate(chunks), channels
