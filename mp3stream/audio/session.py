"""Streaming MP3 decoding session with a bounded refill buffer."""

import logging
from dataclasses import replace
from typing import Optional

import numpy as np

from .post_processing import clamp_volume, process_pcm, MAX_VOLUME
from ..decoder.av_decoder import PyAvFrameDecoder
from ..decoder.base import AbstractFrameDecoder
from ..errors import OutputBufferTooSmallError, StreamIOError
from ..models.frame import DecodeStats, DecodedFrame, FrameInfo

logger = logging.getLogger(__name__)

MIN_BUFFER_SIZE = 1024
DEFAULT_BUFFER_SIZE = 4096
DEFAULT_LOW_WATER_MARGIN = 512

# Worst-case decoded frame: 2304 samples per channel, 2 channels, 16-bit.
MAX_SAMPLES_PER_CHANNEL = 2304
MIN_OUTPUT_BYTES = 2 * MAX_SAMPLES_PER_CHANNEL * 2


class Mp3DecodeSession:
    """Pulls bytes from a stream and decodes them one MP3 frame per call.

    The session borrows the stream: it never closes it, and it must be the
    only reader. It holds no locks; one call may be in flight at a time.
    """

    def __init__(
        self,
        stream,
        frame_decoder: Optional[AbstractFrameDecoder] = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        low_water_margin: int = DEFAULT_LOW_WATER_MARGIN,
    ):
        """Initialize decoding session. No I/O is performed.

        Args:
            stream: Byte source with `readinto(buffer)` and `seek(offset)`
            frame_decoder: Frame decoder primitive (PyAV-backed by default)
            buffer_size: Refill buffer capacity in bytes, at least 1024
            low_water_margin: Refill when fewer than `capacity - margin` bytes are buffered
        """
        if frame_decoder is None:
            frame_decoder = PyAvFrameDecoder()

        self.stream = stream
        self.frame_decoder = frame_decoder

        self.capacity = max(MIN_BUFFER_SIZE, int(buffer_size))
        self.low_water_margin = max(0, min(int(low_water_margin), self.capacity - 1))
        self._buffer = bytearray(self.capacity)
        self._valid_len = 0
        self._end_of_stream = False

        self._frame_info = FrameInfo()
        self._volume = MAX_VOLUME
        self._force_mono = False
        self._elapsed_seconds = 0.0

        # Statistics tracking
        self.frames_decoded = 0
        self.bytes_read = 0
        self.bytes_skipped = 0

        logger.info(f"Mp3DecodeSession initialized: {self.capacity} byte buffer, "
                    f"low-water margin {self.low_water_margin}")

    @property
    def valid_len(self) -> int:
        """Number of unconsumed bytes at the front of the buffer."""
        return self._valid_len

    def decode(self, output) -> int:
        """Decode the next audio frame into `output`.

        Metadata and garbage spans are skipped internally; the call only
        returns once a real frame was decoded or the stream is exhausted.

        Args:
            output: Writable buffer of at least MIN_OUTPUT_BYTES bytes

        Returns:
            Number of PCM bytes written; 0 at end of stream

        Raises:
            OutputBufferTooSmallError: If `output` cannot hold a worst-case frame
            StreamIOError: If reading the stream fails
        """
        out_view = memoryview(output).cast("B")
        if out_view.readonly:
            raise TypeError("Output buffer must be writable")
        if out_view.nbytes < MIN_OUTPUT_BYTES:
            raise OutputBufferTooSmallError(
                f"Output buffer holds {out_view.nbytes} bytes, need at least {MIN_OUTPUT_BYTES}")

        if self._end_of_stream:
            return 0

        # Every pass consumes at least one buffered byte, reads at least one
        # byte into the bounded buffer, or is the single retry after a
        # "need more data" answer, so the loop ends once the stream stops
        # delivering data.
        awaiting_data = False
        while True:
            bytes_read = 0
            if awaiting_data or self._valid_len < self.capacity - self.low_water_margin:
                bytes_read = self._refill()
                if bytes_read == 0 and self._valid_len == 0:
                    self._end_of_stream = True
                    logger.info(f"End of stream reached after {self.frames_decoded} frames "
                                f"({self._elapsed_seconds:.3f}s)")
                    return 0

            result = self.frame_decoder.decode_frame(bytes(self._buffer[:self._valid_len]))

            if (result.frame_byte_length <= 0 and result.samples_per_channel <= 0
                    and self._valid_len < self.capacity
                    and (bytes_read > 0 or not awaiting_data)):
                # The window may end mid-frame after a short read.
                awaiting_data = True
                continue
            awaiting_data = False

            consumed = self._consume(result)

            samples_per_channel = self._usable_samples(result)
            if samples_per_channel > 0:
                return self._emit(result, samples_per_channel, consumed, out_view)

            self.bytes_skipped += consumed
            logger.debug(f"Skipped non-audio span: {consumed} bytes")

    def _refill(self) -> int:
        """Internal method: top up the buffer with one stream read."""
        # Unconsumed bytes already sit at offset 0; the free tail follows them.
        free_tail = memoryview(self._buffer)[self._valid_len:]
        try:
            bytes_read = self.stream.readinto(free_tail)
        except (OSError, ValueError) as e:
            raise StreamIOError(f"Stream read failed: {e}") from e
        finally:
            free_tail.release()

        bytes_read = bytes_read or 0
        self._valid_len += bytes_read
        self.bytes_read += bytes_read
        return bytes_read

    def _consume(self, result: DecodedFrame) -> int:
        """Internal method: drop consumed bytes and shift the tail to offset 0."""
        consumed = result.frame_byte_length
        if consumed <= 0:
            if result.samples_per_channel > 0:
                logger.warning("Frame decoder reported audio without consuming input; "
                               "forcing one byte of progress")
            consumed = 1
        consumed = min(consumed, self._valid_len)

        remaining = self._valid_len - consumed
        self._buffer[:remaining] = self._buffer[consumed:self._valid_len]
        self._valid_len = remaining
        return consumed

    @staticmethod
    def _channels(result: DecodedFrame) -> int:
        return result.channel_count if result.channel_count in (1, 2) else 2

    def _usable_samples(self, result: DecodedFrame) -> int:
        """Internal method: samples per channel actually backed by PCM data."""
        if result.samples_per_channel <= 0:
            return 0
        return min(result.samples_per_channel,
                   result.pcm.size // self._channels(result),
                   MAX_SAMPLES_PER_CHANNEL)

    def _emit(self, result: DecodedFrame, samples_per_channel: int, consumed: int,
              out_view: memoryview) -> int:
        """Internal method: post-process a decoded frame into the output buffer."""
        channels = self._channels(result)

        self._frame_info = replace(result.info, channel_count=channels, frame_byte_length=consumed)
        self.frames_decoded += 1

        if result.sample_rate_hz > 0:
            self._elapsed_seconds += samples_per_channel / result.sample_rate_hz

        pcm = np.asarray(result.pcm, dtype=np.int16)[:samples_per_channel * channels]
        pcm, out_channels = process_pcm(pcm, channels, self._volume, self._force_mono)

        bytes_written = out_channels * samples_per_channel * 2
        out_view[:bytes_written] = pcm.tobytes()

        logger.debug(f"Decoded frame #{self.frames_decoded}: {samples_per_channel} samples/channel, "
                     f"{result.sample_rate_hz}Hz, {channels}ch -> {bytes_written} bytes")
        return bytes_written

    def seek(self, byte_offset: int, time_seconds: float) -> bool:
        """Reposition the stream and restart decoding from there.

        The caller maps time to a byte offset. `time_seconds` becomes the new
        playback position as given; for VBR streams it is only an estimate.

        Raises:
            StreamIOError: If the stream seek fails; session state is unchanged
        """
        try:
            self.stream.seek(byte_offset)
        except (OSError, ValueError) as e:
            raise StreamIOError(f"Stream seek to {byte_offset} failed: {e}") from e

        self._valid_len = 0
        self._end_of_stream = False
        self.frame_decoder.reset()
        self._elapsed_seconds = float(time_seconds)

        logger.info(f"Seeked to byte {byte_offset} ({time_seconds:.3f}s)")
        return True

    def tell(self) -> float:
        """Playback position in seconds."""
        return self._elapsed_seconds

    def set_volume(self, percent: int) -> None:
        """Set output volume; clamped to [0, 100]. Applies from the next decode."""
        self._volume = clamp_volume(percent)
        logger.debug(f"Volume set to {self._volume}%")

    def get_volume(self) -> int:
        return self._volume

    def set_mono(self, enabled: bool) -> None:
        """Enable or disable stereo-to-mono downmix. Applies from the next decode."""
        self._force_mono = bool(enabled)

    def is_mono(self) -> bool:
        return self._force_mono

    def is_end_of_stream(self) -> bool:
        return self._end_of_stream

    # Frame metadata is zero until the first successful decode.
    def get_sample_rate(self) -> int:
        return self._frame_info.sample_rate_hz

    def get_bitrate_kbps(self) -> int:
        return self._frame_info.bitrate_kbps

    def get_channel_count(self) -> int:
        return self._frame_info.channel_count

    def get_frame_info(self) -> FrameInfo:
        return self._frame_info

    def get_decode_stats(self) -> DecodeStats:
        """Get current decoding statistics."""
        return DecodeStats(
            frames_decoded=self.frames_decoded,
            bytes_read=self.bytes_read,
            bytes_skipped=self.bytes_skipped,
            elapsed_seconds=self._elapsed_seconds,
            sample_rate=self._frame_info.sample_rate_hz,
            channels=self._frame_info.channel_count,
            bitrate_kbps=self._frame_info.bitrate_kbps,
            volume=self._volume,
            mono=self._force_mono,
            end_of_stream=self._end_of_stream,
        )
