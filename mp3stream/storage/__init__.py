"""Storage sinks for decoded audio."""

from .wav_sink import WavFileSink

__all__ = ["WavFileSink"]
