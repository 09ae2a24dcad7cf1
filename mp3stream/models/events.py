"""Event models for publishing decoded PCM blocks."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class PcmEvent:
    """Decoded PCM block event with metadata."""
    chunk_id: str
    pcm_data: bytes
    timestamp: float  # Playback position (seconds) at the end of this block
    sequence_number: int
    sample_rate: int = 44100
    channels: int = 2
    chunk_duration_ms: Optional[int] = None
    final: bool = False  # True if no more blocks follow

    def __post_init__(self):
        """Calculate block duration if not provided."""
        if self.chunk_duration_ms is None and self.pcm_data and self.sample_rate:
            # 16-bit PCM (2 bytes per sample)
            bytes_per_second = self.sample_rate * self.channels * 2
            duration_seconds = len(self.pcm_data) / bytes_per_second
            self.chunk_duration_ms = int(duration_seconds * 1000)
