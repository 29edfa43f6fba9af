"""Error taxonomy for request parsing and stream reads."""


class HttpParseError(ValueError):
    """Raised when the bytes on a connection do not form a valid request."""


class UnknownMethodError(HttpParseError):
    """Raised when the request method is outside the supported vocabulary."""

    def __init__(self, token: str) -> None:
        super().__init__(f"Unknown HTTP method: {token}")
        self.token = token


class UnknownHttpVersionError(HttpParseError):
    """Raised when the protocol version is outside the supported vocabulary."""

    def __init__(self, token: str) -> None:
        super().__init__(f"Unknown HTTP version: {token}")
        self.token = token


class MalformedLineError(HttpParseError):
    """Raised when a request or header line is missing a token or separator."""

    def __init__(self, line: str, reason: str) -> None:
        super().__init__(f"Malformed line ({reason}): {line!r}")
        self.line = line
        self.reason = reason


class UnterminatedStreamError(HttpParseError):
    """Raised when the stream ends before the expected delimiter appears."""

    def __init__(self, delimiter: bytes, consumed: int) -> None:
        super().__init__(
            f"Stream ended after {consumed} bytes without delimiter {delimiter!r}"
        )
        self.delimiter = delimiter
        self.consumed = consumed


class Utf8DecodeError(HttpParseError):
    """Raised when a line is not valid UTF-8."""

    def __init__(self, raw: bytes) -> None:
        super().__init__(f"Line is not valid UTF-8: {raw!r}")
        self.raw = raw


class StreamIOError(OSError):
    """Raised when reading from the underlying byte source fails."""
