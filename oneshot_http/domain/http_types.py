"""HTTP request and response value types."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Optional, Union

from oneshot_http.domain.errors import UnknownHttpVersionError, UnknownMethodError

CRLF = "\r\n"


class HttpVersion(str, Enum):
    """Protocol versions recognized on the request line."""

    HTTP_1_0 = "HTTP/1.0"
    HTTP_1_1 = "HTTP/1.1"
    HTTP_2_0 = "HTTP/2.0"

    @classmethod
    def from_token(cls, token: str) -> "HttpVersion":
        """Return the version matching ``token`` exactly."""
        try:
            return cls(token)
        except ValueError as exc:
            raise UnknownHttpVersionError(token) from exc


class HttpMethod(str, Enum):
    """Request methods accepted by the parser."""

    GET = "GET"
    POST = "POST"
    DELETE = "DELETE"
    PATCH = "PATCH"
    PUT = "PUT"

    @classmethod
    def from_token(cls, token: str) -> "HttpMethod":
        """Return the method matching ``token`` exactly."""
        try:
            return cls(token)
        except ValueError as exc:
            raise UnknownMethodError(token) from exc


class HttpStatus(Enum):
    """Response statuses the server can emit."""

    OK = 200, "OK"
    BAD_REQUEST = 400, "Bad Request"
    NOT_FOUND = 404, "Not Found"
    SERVICE_UNAVAILABLE = 503, "Service Unavailable"
    HTTP_VERSION_NOT_SUPPORTED = 505, "HTTP Version Not Supported"

    @property
    def code(self) -> int:
        return self.value[0]

    @property
    def reason(self) -> str:
        return self.value[1]

    def __str__(self) -> str:
        return f"{self.code} {self.reason}"


class HeaderList:
    """Ordered header pairs that keep duplicates and the original name spelling.

    Lookups compare names case-insensitively and return the first match.
    """

    def __init__(self, pairs: Optional[Iterable[tuple[str, str]]] = None) -> None:
        self._pairs: list[tuple[str, str]] = []
        for name, value in pairs or ():
            self.append(name, value)

    def append(self, name: str, value: str) -> None:
        self._pairs.append((name, value))

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the value of the first header called ``name``."""
        wanted = name.lower()
        for existing, value in self._pairs:
            if existing.lower() == wanted:
                return value
        return default

    def set(self, name: str, value: str) -> None:
        """Replace every ``name`` header with a single entry, keeping its position."""
        wanted = name.lower()
        replaced: list[tuple[str, str]] = []
        inserted = False
        for existing, existing_value in self._pairs:
            if existing.lower() != wanted:
                replaced.append((existing, existing_value))
            elif not inserted:
                replaced.append((name, value))
                inserted = True
        if not inserted:
            replaced.append((name, value))
        self._pairs = replaced

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(list(self._pairs))

    def __len__(self) -> int:
        return len(self._pairs)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, HeaderList):
            return self._pairs == other._pairs
        if isinstance(other, list):
            return self._pairs == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"HeaderList({self._pairs!r})"


@dataclass(frozen=True)
class RequestLine:
    """Parsed first line of a request; ``target`` is kept undecoded."""

    method: HttpMethod
    target: str
    version: HttpVersion


@dataclass
class HttpRequest:
    """Represents a parsed HTTP request."""

    request_line: RequestLine
    headers: HeaderList = field(default_factory=HeaderList)
    body: Optional[str] = None

    @property
    def method(self) -> HttpMethod:
        return self.request_line.method

    @property
    def path(self) -> str:
        return self.request_line.target

    @property
    def version(self) -> HttpVersion:
        return self.request_line.version

    def get_header(self, name: str) -> Optional[str]:
        return self.headers.get(name)


@dataclass
class StatusLine:
    """First line of a response; the status may be changed by handlers."""

    version: HttpVersion
    status: HttpStatus = HttpStatus.OK

    def __str__(self) -> str:
        return f"{self.version.value} {self.status}"


class HttpResponse:
    """Represents an HTTP response built up by handlers and sent once.

    Builder methods return the response so calls can be chained::

        HttpResponse(HttpVersion.HTTP_1_1).set_status(HttpStatus.OK).write_text("hi")
    """

    def __init__(self, version: HttpVersion) -> None:
        self.status_line = StatusLine(version)
        self.headers = HeaderList()
        self.content = ""

    @classmethod
    def new(cls, version: HttpVersion) -> "HttpResponse":
        return cls(version)

    @property
    def status(self) -> HttpStatus:
        return self.status_line.status

    def add_header(self, name: str, value: Union[str, int]) -> "HttpResponse":
        self.headers.append(name, str(value))
        return self

    def set_status(self, status: HttpStatus) -> "HttpResponse":
        self.status_line.status = status
        return self

    def add_content(self, content: str) -> "HttpResponse":
        """Replace the body; ``Content-Length`` is left to the caller."""
        self.content = content
        return self

    def write_text(self, text: str) -> "HttpResponse":
        """Set a text/plain body together with a matching Content-Length."""
        self.headers.set("Content-Type", "text/plain")
        self.headers.set("Content-Length", str(len(text.encode("utf-8"))))
        return self.add_content(text)

    def serialize(self) -> bytes:
        """Render the status line, headers, blank line, then the raw body."""
        lines = [str(self.status_line)]
        lines.extend(f"{name}: {value}" for name, value in self.headers)
        head = CRLF.join(lines) + CRLF + CRLF
        return head.encode("utf-8") + self.content.encode("utf-8")

    def __repr__(self) -> str:
        return (
            f"HttpResponse(status_line={str(self.status_line)!r}, "
            f"headers={self.headers!r}, content={self.content!r})"
        )
