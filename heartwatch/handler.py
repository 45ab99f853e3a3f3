"""Per-connection heartbeat handler. Runs in its own thread."""

import logging
import socket

from heartwatch.protocol import (
    RESPONSE_ERROR,
    RESPONSE_OK,
    LineTooLong,
    key_matches,
    read_line,
)
from heartwatch.state import HeartbeatState

logger = logging.getLogger(__name__)


def _send_response(conn: socket.socket, response: bytes):
    try:
        conn.sendall(response)
    except OSError as e:
        logger.warning("Failed to send response: %s", e)


def handle_connection(conn: socket.socket, addr: tuple, key: str,
                      state: HeartbeatState) -> bool:
    """Validate one heartbeat line and answer it.

    Returns True when the key matched and the state was updated. The
    connection is closed on every path.
    """
    try:
        try:
            line = read_line(conn)
        except LineTooLong:
            logger.warning("Oversized heartbeat line from %s", addr[0])
            _send_response(conn, RESPONSE_ERROR)
            return False
        except OSError as e:
            logger.warning("Error reading from %s: %s", addr[0], e)
            return False

        if not key_matches(line, key):
            logger.warning("Invalid key received from %s", addr[0])
            _send_response(conn, RESPONSE_ERROR)
            return False

        logger.info("Heartbeat received from %s", addr[0])
        _send_response(conn, RESPONSE_OK)
        state.record_heartbeat()
        return True
    finally:
        try:
            conn.close()
        except OSError:
            pass
