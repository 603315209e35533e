"""
Protocol Command and Response Definitions

This module defines the data structures for SKK serv protocol commands
and responses.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CommandType(Enum):
    """Command tags, keyed by the first byte of a client frame."""
    END = 0
    REQUEST = 1
    VERSION = 2
    HOST = 3
    UNKNOWN = -1

    @classmethod
    def from_byte(cls, tag: int) -> "CommandType":
        """Map a tag byte to its command, UNKNOWN for anything else."""
        try:
            command_type = cls(tag)
        except ValueError:
            return cls.UNKNOWN
        return command_type


class ResponseStatus(Enum):
    """
    Kinds of server responses.

    Only ERROR, FOUND and NOT_FOUND values are protocol codes written as the
    first byte of a reply. VERSION and HOST replies carry no code.
    """
    ERROR = "0"
    FOUND = "1"
    NOT_FOUND = "4"
    VERSION = "version"
    HOST = "host"


@dataclass
class Command:
    """
    Represents a parsed client frame.

    Attributes:
        type: The command decoded from byte 0
        reading: The decoded reading for REQUEST frames
        raw: The bytes received from the client
        error: Why the frame could not be decoded, empty when it was fine
    """
    type: CommandType
    reading: str = ""
    raw: bytes = b""
    error: str = ""

    @property
    def is_valid(self) -> bool:
        """Check if the command is valid for its type."""
        if self.type == CommandType.UNKNOWN:
            return False
        if self.type == CommandType.REQUEST:
            return not self.error
        return True


@dataclass
class Response:
    """
    Represents a protocol response.

    Attributes:
        status: Which response shape to produce
        value: Conversion, echoed reading, version text or host address
    """
    status: ResponseStatus
    value: Optional[str] = None

    @classmethod
    def found(cls, conversion: str) -> "Response":
        """Create a response carrying a conversion."""
        return cls(status=ResponseStatus.FOUND, value=conversion)

    @classmethod
    def not_found(cls, reading: str) -> "Response":
        """Create a response echoing a reading that has no conversion."""
        return cls(status=ResponseStatus.NOT_FOUND, value=reading)

    @classmethod
    def error(cls) -> "Response":
        """Create an error response."""
        return cls(status=ResponseStatus.ERROR)

    @classmethod
    def version(cls, text: str) -> "Response":
        """Create a version response ("<name>/<version>")."""
        return cls(status=ResponseStatus.VERSION, value=text)

    @classmethod
    def host(cls, address: str, port: int) -> "Response":
        """Create a host response for the local socket address."""
        return cls(status=ResponseStatus.HOST, value=f"{address}:{port}")
