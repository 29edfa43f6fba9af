"""Canned responses the transport layer sends without consulting the router."""

from typing import Optional

from oneshot_http.domain.http_types import HttpResponse, HttpStatus, HttpVersion


def bad_request_response(reason: str = "") -> HttpResponse:
    """Produce a 400 response for a request that could not be parsed."""
    return (
        HttpResponse(HttpVersion.HTTP_1_1)
        .set_status(HttpStatus.BAD_REQUEST)
        .write_text(reason)
        .add_header("Connection", "close")
    )


def version_not_supported_response(version: HttpVersion) -> HttpResponse:
    """Produce a 505 response for a version the server recognizes but cannot speak."""
    return (
        HttpResponse(HttpVersion.HTTP_1_1)
        .set_status(HttpStatus.HTTP_VERSION_NOT_SUPPORTED)
        .write_text(f"{version.value} is not supported")
        .add_header("Connection", "close")
    )


def connection_limited_response(limit_type: Optional[str]) -> HttpResponse:
    """Produce a 503 response describing which connection quota was exceeded."""
    reason = "Connection limit exceeded"
    if limit_type:
        reason = f"{limit_type} connection limit exceeded"
    return (
        HttpResponse(HttpVersion.HTTP_1_1)
        .set_status(HttpStatus.SERVICE_UNAVAILABLE)
        .add_header("Retry-After", "1")
        .write_text(reason)
        .add_header("Connection", "close")
    )


def draining_response() -> HttpResponse:
    """Produce a 503 response indicating the server is draining."""
    return (
        HttpResponse(HttpVersion.HTTP_1_1)
        .set_status(HttpStatus.SERVICE_UNAVAILABLE)
        .write_text("draining")
        .add_header("Connection", "close")
    )
