#!/usr/bin/env python3
"""
Interactive Test Client for skkserv

A simple command-line client for manually testing the SKK server.
Each command opens its own connection, since the server answers exactly
one command per connection.

Usage:
    python scripts/client.py                  # Connect to localhost:1178
    python scripts/client.py --host 1.2.3.4   # Connect to specific host
    python scripts/client.py --port 11178     # Connect to specific port

Commands:
    <reading>      - Convert a reading (e.g. ねこ)
    version        - Ask for the server version
    host           - Ask for the server address
    help           - Show this help
    exit           - Exit client
"""

import argparse
import socket
import sys

# Enable command history with arrow keys (works on Unix systems)
try:
    import readline  # noqa: F401
except ImportError:
    pass  # readline not available on Windows by default

WIRE_ENCODING = "euc_jp"


class SKKClient:
    """Simple TCP client for the SKK serv protocol."""

    def __init__(self, host: str, port: int, timeout: float = 15.0):
        self.host = host
        self.port = port
        self.timeout = timeout

    def send_frame(self, frame: bytes) -> str:
        """Send one frame on a fresh connection and return the reply."""
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout) as sock:
                sock.sendall(frame)
                response = b''
                while True:
                    chunk = sock.recv(4096)
                    if not chunk:
                        break
                    response += chunk
            return response.decode(WIRE_ENCODING, errors='replace')
        except socket.timeout:
            return "ERROR: Request timed out"
        except OSError as e:
            return f"ERROR: {e}"

    def request(self, reading: str) -> str:
        return self.send_frame(b"\x01" + reading.encode(WIRE_ENCODING) + b" \n")

    def version(self) -> str:
        return self.send_frame(b"\x02")

    def server_host(self) -> str:
        return self.send_frame(b"\x03")


def print_help():
    """Print help message."""
    print("""
skkserv Commands:
-----------------
  <reading>      Convert a hiragana reading (e.g. ねこ, たべr)
  version        Show the server version
  host           Show the address the server answered on

Client Commands:
----------------
  help           Show this help message
  exit           Exit the client

Responses:
----------
  1/<conversion> Conversion found
  4<reading>     No conversion found
  0              Server error
""")


def main():
    parser = argparse.ArgumentParser(description="Interactive skkserv client")
    parser.add_argument("--host", default="127.0.0.1", help="Server host")
    parser.add_argument("--port", type=int, default=1178, help="Server port")
    args = parser.parse_args()

    client = SKKClient(args.host, args.port)
    print(f"skkserv client -> {args.host}:{args.port} (type 'help')")

    while True:
        try:
            line = input("skk> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        if not line:
            continue
        if line == "exit":
            break
        if line == "help":
            print_help()
            continue

        if line == "version":
            reply = client.version()
        elif line == "host":
            reply = client.server_host()
        else:
            try:
                reply = client.request(line)
            except UnicodeEncodeError:
                print("ERROR: reading cannot be sent as EUC-JP")
                continue

        print(repr(reply))

    return 0


if __name__ == "__main__":
    sys.exit(main())
