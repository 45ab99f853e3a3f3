"""Line-delimited heartbeat wire format.

Client -> server: ``<key>\\n``. Server -> client: ``OK\\n`` or ``ERROR\\n``.
"""

import socket

RESPONSE_OK = b"OK\n"
RESPONSE_ERROR = b"ERROR\n"
MAX_LINE_BYTES = 4096


class LineTooLong(ValueError):
    """Peer sent more than MAX_LINE_BYTES without a newline."""


def encode_key(key: str) -> bytes:
    """Frame a key for sending: surrounding whitespace stripped, newline appended."""
    return key.strip().encode("utf-8") + b"\n"


def read_line(conn: socket.socket, max_bytes: int = MAX_LINE_BYTES) -> bytes:
    """Read up to and including the first newline.

    Returns the line without its newline. Raises ConnectionError on EOF
    before a newline, LineTooLong past max_bytes, and OSError on socket errors.
    """
    buffer = b""
    while b"\n" not in buffer:
        if len(buffer) > max_bytes:
            raise LineTooLong(f"no newline within {max_bytes} bytes")
        chunk = conn.recv(1024)
        if not chunk:
            raise ConnectionError("connection closed before newline")
        buffer += chunk
    line = buffer.split(b"\n", 1)[0]
    if len(line) > max_bytes:
        raise LineTooLong(f"no newline within {max_bytes} bytes")
    return line


def key_matches(line: bytes, key: str) -> bool:
    """Exact byte comparison after trimming trailing whitespace from the line."""
    return line.rstrip() == key.encode("utf-8")


def parse_response(line: bytes) -> str:
    """Return 'OK', 'ERROR', or 'UNKNOWN' for a server response line."""
    text = line.strip()
    if text == RESPONSE_OK.strip():
        return "OK"
    if text == RESPONSE_ERROR.strip():
        return "ERROR"
    return "UNKNOWN"
