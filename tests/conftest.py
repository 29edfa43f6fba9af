"""Fixtures that run the server as a real subprocess for integration tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator

import pytest

from tests.utils.server import ServerProcessInfo, running_server

if TYPE_CHECKING:
    from _pytest.tmpdir import TempPathFactory


@pytest.fixture(name="server_process")
def _server_process(
    tmp_path_factory: "TempPathFactory",
) -> Iterator[ServerProcessInfo]:
    """Server with default limits."""
    with running_server(tmp_path_factory.mktemp("server-logs")) as info:
        yield info


@pytest.fixture(name="limited_server_process")
def _limited_server_process(
    tmp_path_factory: "TempPathFactory",
) -> Iterator[ServerProcessInfo]:
    """Server allowing a single concurrent connection."""
    limit_args = ["--max-connections", "1", "--max-connections-per-ip", "1"]
    with running_server(
        tmp_path_factory.mktemp("server-logs-limited"), limit_args
    ) as info:
        yield info


@pytest.fixture()
def base_url(server_process: ServerProcessInfo) -> str:
    return server_process["base_url"]
