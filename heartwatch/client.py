"""Heartbeat client: dial, send the key, read one reply, sleep, repeat."""

import logging
import socket
import threading
from enum import Enum

from heartwatch.protocol import encode_key, parse_response, read_line

logger = logging.getLogger(__name__)


class BeatResult(Enum):
    OK = "ok"
    REJECTED = "rejected"
    UNKNOWN_RESPONSE = "unknown_response"
    DIAL_FAILED = "dial_failed"
    WRITE_FAILED = "write_failed"
    READ_FAILED = "read_failed"


class HeartbeatClient:
    """Sends one heartbeat per interval over a fresh connection each time.

    Every failure is logged and followed by the same sleep; there is no
    backoff and no retry limit. Only the shutdown event ends ``run``.
    """

    def __init__(self, host: str, port: int, key: str, interval: float,
                 shutdown_event: threading.Event, connect_timeout: float = 0):
        self._host = host
        self._port = port
        self._payload = encode_key(key)
        self._interval = interval
        self._shutdown = shutdown_event
        self._connect_timeout = connect_timeout if connect_timeout > 0 else None
        self.counts: dict[BeatResult, int] = {r: 0 for r in BeatResult}

    def run(self):
        logger.info("Sending heartbeats to %s:%d every %ss",
                    self._host, self._port, self._interval)
        while not self._shutdown.is_set():
            self.beat()
            self._shutdown.wait(self._interval)

    def beat(self) -> BeatResult:
        """Perform a single dial/send/receive exchange."""
        result = self._exchange()
        self.counts[result] += 1
        return result

    def _exchange(self) -> BeatResult:
        try:
            sock = socket.create_connection((self._host, self._port),
                                            timeout=self._connect_timeout)
        except OSError as e:
            logger.error("Error connecting to server %s:%d: %s", self._host, self._port, e)
            return BeatResult.DIAL_FAILED

        with sock:
            try:
                sock.sendall(self._payload)
            except OSError as e:
                logger.error("Error writing to server: %s", e)
                return BeatResult.WRITE_FAILED

            try:
                line = read_line(sock)
            except (OSError, ValueError) as e:
                logger.error("Error reading from server: %s", e)
                return BeatResult.READ_FAILED

        response = parse_response(line)
        if response == "OK":
            logger.info("Server response: OK")
            return BeatResult.OK
        if response == "ERROR":
            logger.warning("Server response: ERROR")
            return BeatResult.REJECTED
        logger.warning("Unexpected server response: %r", line[:200])
        return BeatResult.UNKNOWN_RESPONSE
