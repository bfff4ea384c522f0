from contextlib import asynccontextmanager

import pytest
from mcp.shared.memory import create_connected_server_and_client_session

from src.servers.semrush.main import create_server


@pytest.fixture
def server(semrush_client):
    """Semrush MCP server wired to the fake Semrush API"""
    return create_server("test-user", client=semrush_client)


@pytest.fixture
def connect():
    """
    Return a factory for in-process MCP client sessions.

    Sessions are opened inside the test body (``async with connect(server)``)
    so the server task group is entered and exited by the same task.
    """

    @asynccontextmanager
    async def open_session(server_instance):
        async with create_connected_server_and_client_session(
            server_instance
        ) as session:
            yield session

    return open_session
