"""Exceptions raised by the mp3stream decoding session."""


class Mp3StreamError(Exception):
    """Base class for mp3stream errors."""


class StreamIOError(Mp3StreamError):
    """Reading from or seeking the underlying byte stream failed.

    The session is not left half-updated: bytes already buffered stay valid
    and no audio is reported for the failed call. Retrying is up to the caller.
    """


class OutputBufferTooSmallError(Mp3StreamError, ValueError):
    """The caller-provided PCM output buffer cannot hold a worst-case frame."""
