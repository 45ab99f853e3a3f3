"""TCP accept loop for heartbeats, with the deadline checker alongside."""

import logging
import socket
import threading

from heartwatch.checker import DeadlineChecker
from heartwatch.config import WatchdogConfig
from heartwatch.escalation import ScriptEscalation
from heartwatch.handler import handle_connection
from heartwatch.state import HeartbeatState

logger = logging.getLogger(__name__)


class HeartbeatServer:
    """Accepts heartbeat connections serially, handling each on its own thread."""

    def __init__(self, config: WatchdogConfig, shutdown_event: threading.Event,
                 escalation=None, state: HeartbeatState | None = None):
        self._config = config
        self._shutdown = shutdown_event
        self.state = state or HeartbeatState()
        self.checker = DeadlineChecker(
            self.state,
            escalation or ScriptEscalation(config.script_dir, config.script_timeout),
            timeout=config.timeout,
            attempts=config.attempts,
            shutdown_event=shutdown_event,
            interval=config.effective_check_interval,
        )
        self._sock = None
        self._server_address = None

    @property
    def server_address(self) -> tuple:
        """Return (host, port) the server is bound to. Useful when port=0."""
        return self._server_address

    def bind(self):
        """Open the listening socket. Failures propagate to the caller."""
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            self._sock.bind((self._config.host, self._config.port))
            self._sock.listen(16)
        except OSError:
            self._sock.close()
            self._sock = None
            raise
        self._sock.settimeout(1.0)
        self._server_address = self._sock.getsockname()
        logger.info("Server listening on %s:%d", *self._server_address)

    def start(self):
        """Bind if needed, start the checker, and accept until shutdown."""
        if self._sock is None:
            self.bind()
        self.checker.start()
        logger.info("Heartbeat timeout %ss, check every %ss, escalate after %d misses",
                    self._config.timeout, self.checker.interval, self._config.attempts)

        while not self._shutdown.is_set():
            try:
                conn, addr = self._sock.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._shutdown.is_set():
                    break
                logger.warning("Error accepting connection: %s", e)
                self._shutdown.wait(0.1)
                continue

            conn.settimeout(None)
            t = threading.Thread(
                target=handle_connection,
                args=(conn, addr, self._config.key, self.state),
                daemon=True,
            )
            t.start()

    def stop(self):
        """Signal shutdown and close the listen socket."""
        logger.info("Server shutting down...")
        self._shutdown.set()
        if self._sock:
            try:
                self._sock.close()
            except OSError:
                pass
        self.checker.stop()
