"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import asyncio
import socket
import pytest
import pytest_asyncio
from contextlib import closing
from typing import AsyncGenerator, Dict, List, Optional

from skkserv.cache.store import CacheStore
from skkserv.lookup.service import LookupService
from skkserv.protocol.parser import ProtocolParser
from skkserv.network.tcp_server import SKKServer


def find_free_port() -> int:
    """Find an available port for testing."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


class StubClient:
    """Stands in for TransliterateClient and records every lookup."""

    def __init__(self, conversions: Optional[Dict[str, str]] = None):
        self.conversions = conversions or {}
        self.calls: List[str] = []

    def lookup(self, reading: str) -> Optional[str]:
        self.calls.append(reading)
        return self.conversions.get(reading)


# ============================================================================
# Cache Fixtures
# ============================================================================

@pytest.fixture
def cache_path(tmp_path) -> str:
    """Location of a cache file that does not exist yet."""
    return str(tmp_path / "cache.tsv")


@pytest.fixture
def store(cache_path: str) -> CacheStore:
    """Create a fresh CacheStore with the default one-day TTL."""
    return CacheStore(path=cache_path, ttl=86400)


# ============================================================================
# Lookup Fixtures
# ============================================================================

@pytest.fixture
def stub_client() -> StubClient:
    """Remote client knowing a couple of readings."""
    return StubClient({
        "ねこ": "猫",
        "neko": "猫/根古",
        "かんじ": "漢字/感じ/幹事",
    })


@pytest.fixture
def service(store: CacheStore, stub_client: StubClient) -> LookupService:
    """LookupService over the fresh store and the stub client."""
    return LookupService(store=store, client=stub_client)


# ============================================================================
# Protocol Fixtures
# ============================================================================

@pytest.fixture
def parser() -> ProtocolParser:
    """Create a ProtocolParser instance."""
    return ProtocolParser()


# ============================================================================
# Server Fixtures
# ============================================================================

@pytest.fixture
def server_port() -> int:
    """Get a free port for server testing."""
    return find_free_port()


@pytest_asyncio.fixture
async def server(server_port: int, service: LookupService) -> AsyncGenerator[SKKServer, None]:
    """
    Create and start a server instance for testing.

    This fixture:
    1. Creates an SKKServer on a random free port
    2. Starts it in a background task
    3. Yields the server for testing
    4. Cleans up after the test
    """
    srv = SKKServer(
        service=service,
        host='127.0.0.1',
        port=server_port,
        read_timeout=1.0,
        version="skkserv/1.0.0",
    )

    # Start server in background task
    server_task = asyncio.create_task(srv.start())

    # Wait for server to be ready
    await asyncio.sleep(0.1)

    yield srv

    # Cleanup
    await srv.stop()
    server_task.cancel()
    try:
        await server_task
    except asyncio.CancelledError:
        pass


# ============================================================================
# Client Fixtures
# ============================================================================

@pytest.fixture
def send_frame(server_port: int):
    """
    Send one raw frame on a new connection and read until the server
    closes it.

    Usage:
        async def test_something(server, send_frame):
            assert await send_frame(b"\\x02") == b"skkserv/1.0.0 "
    """
    async def _send(frame: bytes) -> bytes:
        reader, writer = await asyncio.open_connection('127.0.0.1', server_port)
        try:
            if frame:
                writer.write(frame)
                await writer.drain()
            else:
                writer.write_eof()
            return await asyncio.wait_for(reader.read(), timeout=5)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except Exception:
                pass
    return _send


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
