"""
Async TCP Server Module

This module implements the SKK serv connection handler.

Every connection is single-shot:
    AwaitingFrame -> Dispatching -> Responded -> Closed

One bounded read, at most one response, then the connection is closed.
Everything runs on one asyncio event loop thread, so the shared
LookupService and its cache need no locking.
"""

import asyncio
import logging
from asyncio import StreamReader, StreamWriter
from typing import Optional, Set

from .. import __version__
from ..config.settings import settings
from ..lookup.service import LookupService, LookupStatus
from ..protocol.commands import Command, CommandType, Response
from ..protocol.parser import ProtocolParser

logger = logging.getLogger(__name__)


class SKKServer:
    """
    Asynchronous TCP server for the SKK serv protocol.

    Usage:
        server = SKKServer(host='127.0.0.1', port=1178, service=service)
        await server.start()  # Runs forever

    Attributes:
        host: Server bind address (e.g., '0.0.0.0')
        port: Server port number (e.g., 1178)
        service: The LookupService shared by all connections
        parser: The ProtocolParser for frames and responses
        read_timeout: Seconds to wait for a client's frame
        version: Text sent for the VERSION command
    """

    def __init__(
            self,
            service: LookupService,
            host: str = None,
            port: int = None,
            read_timeout: float = None,
            version: str = None,
    ):
        """
        Initialize the server.

        Args:
            service: LookupService used for REQUEST commands
            host: Bind address (default from settings)
            port: Port number (default from settings)
            read_timeout: Frame read timeout (default from settings)
            version: Version text (default "<SERVER_NAME>/<package version>")
        """
        self.host = host if host is not None else settings.HOST
        self.port = port if port is not None else settings.PORT
        self.service = service
        self.parser = ProtocolParser()
        self.read_timeout = read_timeout if read_timeout is not None else settings.READ_TIMEOUT
        self.version = version if version is not None else f"{settings.SERVER_NAME}/{__version__}"

        # Server state
        self._server: Optional[asyncio.Server] = None
        self._running = False
        self._active: Set[StreamWriter] = set()
        self._connection_count = 0
        self._total_requests = 0

    async def handle_client(
            self,
            reader: StreamReader,
            writer: StreamWriter
    ) -> None:
        """
        Handle a single client connection.

        Reads one frame, writes at most one response and closes the
        connection, whatever the command was.

        Args:
            reader: StreamReader for reading from the client
            writer: StreamWriter for writing to the client
        """
        addr = writer.get_extra_info('peername')
        self._connection_count += 1
        self._active.add(writer)
        logger.debug(f"Client connected: {addr}")

        try:
            try:
                data = await asyncio.wait_for(
                    reader.read(settings.READ_BUFFER_SIZE),
                    timeout=self.read_timeout,
                )
            except asyncio.TimeoutError:
                logger.debug(f"Read timed out: {addr}")
                return

            if not data:
                logger.debug(f"Client disconnected: {addr}")
                return

            command = self.parser.parse_request(data)
            response = self.dispatch(command, writer)
            if response is None:
                return

            writer.write(response)
            await writer.drain()

        except ConnectionError as exc:
            logger.debug(f"Connection error from {addr}: {exc}")
        except Exception as exc:  # Log unexpected errors but keep server alive
            logger.exception(f"Error handling client {addr}: {exc}")
        finally:
            self._active.discard(writer)
            try:
                writer.close()
                await writer.wait_closed()
            except Exception:
                pass

    def dispatch(self, command: Command, writer: StreamWriter) -> Optional[bytes]:
        """
        Produce the wire response for a command.

        Args:
            command: The parsed frame
            writer: The connection, used for the HOST command

        Returns:
            Encoded response, or None when nothing should be sent
        """
        if command.type == CommandType.END:
            logger.debug("Client sent END")
            return None

        if command.type == CommandType.REQUEST:
            self._total_requests += 1
            return self._handle_request(command)

        if command.type == CommandType.VERSION:
            return self.parser.format_response(Response.version(self.version))

        if command.type == CommandType.HOST:
            address, port = writer.get_extra_info('sockname')[:2]
            return self.parser.format_response(Response.host(address, port))

        logger.debug(f"Ignoring unknown command tag {command.raw[:1]!r}")
        return None

    def _handle_request(self, command: Command) -> bytes:
        """
        Resolve a REQUEST frame.

        Any failure, including a conversion that cannot be encoded for the
        wire, becomes the error response.
        """
        if not command.is_valid:
            logger.debug(f"Invalid request frame: {command.error}")
            return self.parser.format_response(Response.error())

        result = self.service.resolve(command.reading)
        try:
            if result.status == LookupStatus.FOUND:
                return self.parser.format_response(Response.found(result.conversion))
            if result.status == LookupStatus.NOT_FOUND:
                return self.parser.format_response(Response.not_found(command.reading))
        except UnicodeEncodeError as exc:
            logger.warning(f"Cannot encode response for {command.reading!r}: {exc}")

        return self.parser.format_response(Response.error())

    async def start(self) -> None:
        """
        Start the server and begin accepting connections.

        Runs until cancelled or stop() is called.

        Example:
            server = SKKServer(service, port=1178)
            asyncio.run(server.start())
        """
        if self._running:
            return

        self._server = await asyncio.start_server(
            self.handle_client,
            self.host,
            self.port,
        )
        self._running = True

        addrs = ', '.join(str(sock.getsockname()) for sock in self._server.sockets or [])
        logger.info(f"Serving on {addrs}")

        try:
            async with self._server:
                await self._server.serve_forever()
        except asyncio.CancelledError:
            logger.debug("Server start cancelled")
        finally:
            self._running = False

    async def stop(self) -> None:
        """
        Stop the server gracefully.

        Closes the server and waits for it to fully shut down.
        """
        if self._server is None:
            return

        self._server.close()
        try:
            await self._server.wait_closed()
        finally:
            self._server = None
            self._running = False

    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running

    def active_connections(self) -> int:
        """Number of connections currently being handled."""
        return len(self._active)

    def get_stats(self) -> dict:
        """
        Get server statistics.

        Returns:
            Dictionary with connection and request counts plus the
            lookup service stats.
        """
        return {
            "running": self._running,
            "host": self.host,
            "port": self.port,
            "total_connections": self._connection_count,
            "active_connections": len(self._active),
            "total_requests": self._total_requests,
            "lookup_stats": self.service.get_stats(),
        }
