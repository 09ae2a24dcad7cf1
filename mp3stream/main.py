"""Command-line entry point: decode an MP3 file to a WAV file."""

import sys
import argparse
import logging
from pathlib import Path
from typing import Optional

from mp3stream.audio.pcm_pub import PcmPublisher
from mp3stream.audio.session import Mp3DecodeSession, MIN_OUTPUT_BYTES
from mp3stream.decoder.base import AbstractFrameDecoder
from mp3stream.errors import Mp3StreamError
from mp3stream.models.frame import DecodeStats
from mp3stream.storage.wav_sink import WavFileSink

from .config import Mp3StreamConfig

logger = logging.getLogger(__name__)


def estimate_byte_offset(time_seconds: float, bitrate_kbps: int, data_start: int = 0) -> int:
    """Approximate the stream offset of `time_seconds` from a constant bitrate.

    Only exact for CBR streams; VBR streams land near, not on, the target.
    """
    if time_seconds <= 0 or bitrate_kbps <= 0:
        return data_start
    return data_start + int(time_seconds * bitrate_kbps * 1000 / 8)


class DecodeRunner:

    def __init__(self, config_path: Optional[str] = None, log_level: Optional[str] = None):
        # Load configuration
        self.config = Mp3StreamConfig(config_path)
        # Set up logging (command line overrides config)
        log_level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, log_level)
        self.topic = "pcm.frame"

    def run(self, input_path: str, output_path: str, start_seconds: float = 0.0,
            frame_decoder: Optional[AbstractFrameDecoder] = None) -> DecodeStats:
        """Decode `input_path` into a WAV file at `output_path`.

        Args:
            input_path: MP3 file to decode
            output_path: WAV file to write
            start_seconds: Approximate position to start decoding from
            frame_decoder: Frame decoder primitive (PyAV-backed by default)

        Returns:
            Decoding statistics of the finished session
        """
        buffer_size = self.config.get('decoder.buffer_size', 4096)
        low_water_margin = self.config.get('decoder.low_water_margin', 512)

        output = bytearray(MIN_OUTPUT_BYTES)

        logger.info(f"Decoding {input_path} -> {output_path}")
        with open(input_path, 'rb') as stream:
            publisher = PcmPublisher(self.topic)
            sink = WavFileSink(self.topic, output_path)
            session = Mp3DecodeSession(
                stream,
                frame_decoder=frame_decoder,
                buffer_size=buffer_size,
                low_water_margin=low_water_margin,
            )
            session.set_volume(self.config.get('playback.volume', 100))
            session.set_mono(self.config.get('playback.mono', False))

            try:
                bytes_written = session.decode(output)
                if start_seconds > 0 and bytes_written:
                    # Everything skipped before the first frame is tags or garbage
                    data_start = session.get_decode_stats().bytes_skipped
                    offset = estimate_byte_offset(start_seconds, session.get_bitrate_kbps(), data_start)
                    logger.info(f"Starting at ~{start_seconds:.2f}s (byte {offset})")
                    session.seek(offset, start_seconds)
                    bytes_written = session.decode(output)

                while bytes_written:
                    publisher.publish_pcm(
                        bytes(output[:bytes_written]),
                        timestamp=session.tell(),
                        sample_rate=session.get_sample_rate(),
                        channels=self._output_channels(session),
                    )
                    bytes_written = session.decode(output)
            finally:
                publisher.publish_pcm(
                    b"",
                    timestamp=session.tell(),
                    sample_rate=session.get_sample_rate(),
                    channels=self._output_channels(session),
                    final=True,
                )
                sink.close()

        stats = session.get_decode_stats()
        logger.info(f"Decoded {stats.frames_decoded} frames, {stats.elapsed_seconds:.2f}s of audio, "
                    f"{stats.bytes_skipped} bytes skipped")
        return stats

    @staticmethod
    def _output_channels(session: Mp3DecodeSession) -> int:
        if session.is_mono():
            return 1
        return session.get_channel_count()


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'logs/mp3stream.log')
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("mp3stream starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def main() -> None:
    """Main entry point for the mp3stream command."""
    parser = argparse.ArgumentParser(
        description="mp3stream - decode an MP3 file to 16-bit WAV"
    )

    parser.add_argument("input", type=str, help="MP3 file to decode")

    parser.add_argument(
        "-o", "--output",
        type=str,
        required=True,
        help="WAV file to write"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in settings)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )

    parser.add_argument(
        "--volume",
        type=int,
        help="Output volume in percent, 0-100 (overrides config)"
    )

    parser.add_argument(
        "--mono",
        action="store_true",
        help="Downmix stereo to mono"
    )

    parser.add_argument(
        "--start",
        type=float,
        default=0.0,
        help="Approximate start position in seconds (default: 0)"
    )

    parser.add_argument(
        "--buffer-size",
        type=int,
        help="Input refill buffer size in bytes (overrides config)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="mp3stream v0.1.0"
    )

    args = parser.parse_args()

    try:
        runner = DecodeRunner(args.config, args.log_level)
        if args.volume is not None:
            runner.config.set('playback.volume', args.volume)
        if args.mono:
            runner.config.set('playback.mono', True)
        if args.buffer_size is not None:
            runner.config.set('decoder.buffer_size', args.buffer_size)

        stats = runner.run(args.input, args.output, start_seconds=args.start)
        print(f"Decoded {stats.frames_decoded} frames ({stats.elapsed_seconds:.2f}s) to {args.output}")
    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(130)
    except (Mp3StreamError, OSError, ValueError) as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
