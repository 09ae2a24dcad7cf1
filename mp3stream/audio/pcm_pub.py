"""PCM publisher module for pub/sub event publishing."""

import logging
from typing import Callable

from pubsub import pub

from ..models.events import PcmEvent

logger = logging.getLogger(__name__)


class PcmPublisher:
    """Publishes decoded PCM blocks using pubsub.pub."""

    def __init__(self, topic: str = "pcm.frame"):
        """Initialize PCM publisher.

        Args:
            topic: Pub/sub topic name for PCM events
        """
        self.topic = topic
        self.sequence_number = 0
        logger.info(f"PcmPublisher initialized with topic: {topic}")

    def publish_pcm(self, pcm_data: bytes, timestamp: float, sample_rate: int,
                    channels: int, final: bool = False) -> PcmEvent:
        """Wrap a decoded block in a PcmEvent and publish it.

        Args:
            pcm_data: Interleaved 16-bit PCM bytes (may be empty for the final event)
            timestamp: Playback position in seconds at the end of the block
            sample_rate: Sample rate of the block in Hz
            channels: Channel count of the block
            final: True if no more blocks follow

        Returns:
            The published event
        """
        self.sequence_number += 1
        event = PcmEvent(
            chunk_id=f"pcm_{self.sequence_number}",
            pcm_data=pcm_data,
            timestamp=timestamp,
            sequence_number=self.sequence_number,
            sample_rate=sample_rate,
            channels=channels,
            final=final,
        )
        self.publish_pcm_event(event)
        return event

    def publish_pcm_event(self, event: PcmEvent) -> None:
        pub.sendMessage(self.topic, event=event)
        logger.debug(f"Published PCM event: {event.chunk_id} ({len(event.pcm_data)} bytes)")

    def get_callback(self) -> Callable[[PcmEvent], None]:
        """Get callback function that publishes PCM events."""
        return self.publish_pcm_event
