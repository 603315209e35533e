"""
Protocol Parser Module

This module handles parsing of raw SKK serv frames and formatting of
responses.
"""

from .commands import Command, CommandType, Response, ResponseStatus
from ..config.settings import settings


class ProtocolParser:
    """
    Parser for the SKK serv byte protocol.

    Protocol Format:
        Request:  <tag byte>[reading]( |\\n)
        Response: depends on the command, see below

    Commands:
        0                  -> (connection closed, no response)
        1<reading> \\n      -> 1/<conversion>\\n | 4<reading> \\n | 0\\n
        2                  -> <name>/<version><space>
        3                  -> <host>:<port>:<space>

    The reading travels in EUC-JP.
    """

    def __init__(self, encoding: str = None):
        """Initialize the parser with the wire encoding from settings."""
        self.encoding = encoding if encoding is not None else settings.WIRE_ENCODING

    def parse_request(self, data: bytes) -> Command:
        """
        Parse a raw client frame into a Command object.

        Args:
            data: Bytes read from the client (at least one byte)

        Returns:
            Command object representing the parsed frame.
            Returns Command with type=UNKNOWN for unknown tags or empty input.

        Examples:
            >>> parser = ProtocolParser()
            >>> cmd = parser.parse_request(b"\\x01neko \\n")
            >>> cmd.type == CommandType.REQUEST
            True
            >>> cmd.reading
            'neko'
        """
        if not data:
            return Command(type=CommandType.UNKNOWN, raw=data)

        command_type = CommandType.from_byte(data[0])
        if command_type != CommandType.REQUEST:
            return Command(type=command_type, raw=data)

        return self._parse_reading(data)

    def _parse_reading(self, data: bytes) -> Command:
        """
        Extract the reading of a REQUEST frame.

        The reading runs from byte 1 up to the first space, or failing that
        the first newline, or failing both the end of the buffer.
        """
        end = data.find(b" ", 1)
        if end == -1:
            end = data.find(b"\n", 1)
        if end == -1:
            end = len(data)

        try:
            reading = data[1:end].decode(self.encoding)
        except UnicodeDecodeError:
            return Command(type=CommandType.REQUEST, raw=data, error="invalid encoding")

        return Command(type=CommandType.REQUEST, reading=reading, raw=data)

    def format_response(self, response: Response) -> bytes:
        """
        Format a Response object into wire bytes.

        Args:
            response: Response object to format

        Returns:
            Encoded response. FOUND, NOT_FOUND and ERROR end with a newline;
            VERSION and HOST end with a single space.

        Raises:
            UnicodeEncodeError: If the value cannot be represented in the
                wire encoding

        Examples:
            >>> parser = ProtocolParser()
            >>> parser.format_response(Response.error())
            b'0\\n'
            >>> parser.format_response(Response.not_found("mishiranu"))
            b'4mishiranu \\n'
        """
        status = response.status

        if status == ResponseStatus.FOUND:
            text = f"{status.value}/{response.value}\n"
        elif status == ResponseStatus.NOT_FOUND:
            text = f"{status.value}{response.value} \n"
        elif status == ResponseStatus.VERSION:
            text = f"{response.value} "
        elif status == ResponseStatus.HOST:
            text = f"{response.value}: "
        else:
            text = f"{ResponseStatus.ERROR.value}\n"

        return text.encode(self.encoding)
