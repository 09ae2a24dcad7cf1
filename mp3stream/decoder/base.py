"""Abstract base class for MP3 frame decoder primitives."""

from abc import ABC, abstractmethod

from ..models.frame import DecodedFrame


class AbstractFrameDecoder(ABC):
    """Decodes at most one frame from the front of an input window."""

    @abstractmethod
    def decode_frame(self, data: bytes) -> DecodedFrame:
        """Decode the frame at the start of `data`.

        Args:
            data: Unconsumed input bytes, starting at the current position

        Returns:
            DecodedFrame with interleaved int16 PCM. `samples_per_channel` is 0
            when only metadata or garbage was stepped over, and both counts
            are 0 when no sync was found or more data is needed.
        """
        pass

    @abstractmethod
    def reset(self) -> None:
        """Drop sync and bit-reservoir state, e.g. after a discontinuous seek."""
        pass
