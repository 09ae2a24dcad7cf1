"""Post-decode PCM transforms: stereo-to-mono downmix and volume scaling."""

from typing import Tuple

import numpy as np

MIN_VOLUME = 0
MAX_VOLUME = 100


def clamp_volume(percent: int) -> int:
    """Clamp a volume percentage to [0, 100]."""
    return max(MIN_VOLUME, min(MAX_VOLUME, int(percent)))


def _div_trunc(values: np.ndarray, divisor: int) -> np.ndarray:
    """Integer division rounding toward zero, like C integer division."""
    return np.sign(values) * (np.abs(values) // divisor)


def process_pcm(pcm: np.ndarray, channels: int, volume_percent: int,
                force_mono: bool) -> Tuple[np.ndarray, int]:
    """Apply downmix and volume to interleaved int16 samples in one pass.

    All arithmetic is done in int32 so full-scale samples cannot wrap.
    Downmix runs before volume, so a downmixed stream is scaled exactly once.

    Args:
        pcm: Interleaved int16 samples
        channels: Channel count of `pcm`
        volume_percent: Volume in [0, 100]
        force_mono: Average stereo pairs into a single channel

    Returns:
        Tuple of (int16 samples, output channel count)
    """
    out_channels = channels
    samples = pcm.astype(np.int32)

    if force_mono and channels == 2:
        pairs = samples.reshape(-1, 2)
        samples = _div_trunc(pairs[:, 0] + pairs[:, 1], 2)
        out_channels = 1

    if volume_percent < MAX_VOLUME:
        samples = _div_trunc(samples * volume_percent, MAX_VOLUME)

    samples = np.clip(samples, np.iinfo(np.int16).min, np.iinfo(np.int16).max)
    return samples.astype(np.int16), out_channels
