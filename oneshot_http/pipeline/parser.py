"""Incremental HTTP/1.x request parsing on top of the delimiter scanner."""

import logging
from typing import BinaryIO

from oneshot_http.domain.correlation_id import CorrelationLoggerAdapter
from oneshot_http.domain.errors import MalformedLineError, Utf8DecodeError
from oneshot_http.domain.http_types import (
    HeaderList,
    HttpMethod,
    HttpRequest,
    HttpVersion,
    RequestLine,
)
from oneshot_http.pipeline.scanner import CRLF, scan_until

PARSER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("oneshot_http.pipeline.parser"), {}
)

HEADER_SEPARATOR = ": "


def _read_line(source: BinaryIO) -> str:
    raw = scan_until(source, CRLF)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise Utf8DecodeError(raw) from exc


def parse_request_line(source: BinaryIO) -> RequestLine:
    """Read the first line and split it into method, target and version."""
    line = _read_line(source)
    tokens = line.split(" ")
    if len(tokens) != 3 or not all(tokens):
        raise MalformedLineError(line, "expected METHOD TARGET VERSION")

    method_token, target, version_token = tokens
    method = HttpMethod.from_token(method_token)
    version = HttpVersion.from_token(version_token)
    return RequestLine(method=method, target=target, version=version)


def parse_headers(source: BinaryIO) -> HeaderList:
    """Read header lines until the blank line that closes the block."""
    headers = HeaderList()
    while True:
        line = _read_line(source).strip()
        if not line:
            return headers
        name, separator, value = line.partition(HEADER_SEPARATOR)
        if not separator or not name:
            raise MalformedLineError(line, "missing header separator")
        headers.append(name, value)


def parse_request(source: BinaryIO) -> HttpRequest:
    """Parse one request head from ``source``; the body is left unread."""
    request_line = parse_request_line(source)
    headers = parse_headers(source)
    if PARSER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        PARSER_LOGGER.debug(
            "Parsed request",
            extra={
                "event": "request_parsed",
                "method": request_line.method.value,
                "route": request_line.target,
                "header_count": len(headers),
            },
        )
    return HttpRequest(request_line=request_line, headers=headers)
