"""Delimiter-driven reads from a buffered byte source."""

from collections import deque
from typing import BinaryIO

from oneshot_http.domain.errors import StreamIOError, UnterminatedStreamError

CRLF = b"\r\n"


def scan_until(source: BinaryIO, delimiter: bytes) -> bytes:
    """Consume ``source`` up to and including ``delimiter``.

    Returns everything read before the delimiter. Bytes are consumed one at a
    time and never pushed back, so on success the source is positioned just
    past the delimiter.

    Raises:
        UnterminatedStreamError: the source hit end of stream first.
        StreamIOError: reading from the source failed.
    """
    if not delimiter:
        raise ValueError("delimiter must not be empty")

    buffer = bytearray()
    window: deque[int] = deque(maxlen=len(delimiter))
    target = deque(delimiter)

    while True:
        try:
            byte = source.read(1)
        except OSError as exc:
            raise StreamIOError(f"Failed reading from stream: {exc}") from exc
        if not byte:
            raise UnterminatedStreamError(delimiter, len(buffer))

        buffer += byte
        window.append(byte[0])
        if window == target:
            del buffer[-len(delimiter) :]
            return bytes(buffer)
