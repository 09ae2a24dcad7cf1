"""WAV file sink for decoded PCM events."""

import logging
import wave
from pathlib import Path
from typing import Optional

from pubsub import pub

from ..models.events import PcmEvent

logger = logging.getLogger(__name__)


class WavFileSink:
    """Subscribes to a PCM topic and writes every block to a WAV file.

    The file is opened on the first event, using that event's channel count
    and sample rate, and closed on a final event or `close()`.
    """

    def __init__(self, topic: str, filepath: str):
        """Initialize WAV sink.

        Args:
            topic: Pub/sub topic carrying PcmEvents
            filepath: Path of the WAV file to write
        """
        self.topic = topic
        self.filepath = Path(filepath)
        self.channels: Optional[int] = None
        self.sample_rate: Optional[int] = None
        self.frames_written = 0
        self.blocks_dropped = 0
        self._wav_file: Optional[wave.Wave_write] = None
        self._closed = False

        pub.subscribe(self._on_pcm, topic)
        logger.info(f"WavFileSink subscribed to {topic}, writing {self.filepath}")

    def _on_pcm(self, event: PcmEvent) -> None:
        """Handle PCM event."""
        if self._closed:
            logger.warning(f"Dropping {event.chunk_id}: sink already closed")
            return

        if event.pcm_data:
            if self._wav_file is None:
                self._open(event.channels, event.sample_rate)

            if event.channels != self.channels or event.sample_rate != self.sample_rate:
                self.blocks_dropped += 1
                logger.warning(f"Dropping {event.chunk_id}: format changed to "
                               f"{event.sample_rate}Hz/{event.channels}ch mid-stream")
            else:
                self._wav_file.writeframes(event.pcm_data)
                self.frames_written += len(event.pcm_data) // (2 * self.channels)

        if event.final:
            self.close()

    def _open(self, channels: int, sample_rate: int) -> None:
        """Internal method: create the WAV file with the stream's format."""
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        self.channels = channels
        self.sample_rate = sample_rate

        self._wav_file = wave.open(str(self.filepath), 'wb')
        self._wav_file.setnchannels(channels)
        self._wav_file.setsampwidth(2)  # 16-bit
        self._wav_file.setframerate(sample_rate)
        logger.info(f"Opened {self.filepath}: {sample_rate}Hz, {channels} channels")

    def close(self) -> None:
        """Finish the WAV file and stop listening."""
        if self._closed:
            return
        self._closed = True

        if self._wav_file is not None:
            self._wav_file.close()
            self._wav_file = None
            logger.info(f"WAV file saved to {self.filepath} ({self.frames_written} frames)")
        else:
            logger.warning("No audio data to save")

        pub.unsubscribe(self._on_pcm, self.topic)
