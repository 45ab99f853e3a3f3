"""Tests for the per-connection heartbeat handler."""

import socket

from heartwatch.handler import handle_connection
from heartwatch.state import HeartbeatState

ADDR = ("127.0.0.1", 50000)


def _exchange(payload: bytes, state: HeartbeatState, key: str = "abc123",
              close_writer: bool = False):
    """Run the handler on one end of a socketpair. Returns (validated, response)."""
    client, server_side = socket.socketpair()
    try:
        client.sendall(payload)
        if close_writer:
            client.shutdown(socket.SHUT_WR)
        validated = handle_connection(server_side, ADDR, key, state)
        response = b""
        while True:
            chunk = client.recv(1024)
            if not chunk:
                break
            response += chunk
        return validated, response
    finally:
        client.close()


class TestValidKey:
    def test_ok_and_state_updated(self, clock):
        state = HeartbeatState(time_func=clock)
        clock.advance(7)
        validated, response = _exchange(b"abc123\n", state)
        assert validated is True
        assert response == b"OK\n"
        assert state.last_seen == clock.now

    def test_clears_miss_count(self, clock):
        state = HeartbeatState(time_func=clock)
        clock.advance(10)
        state.check(timeout=2, attempts=5)
        assert state.miss_count == 1
        validated, _ = _exchange(b"abc123\n", state)
        assert validated is True
        assert state.miss_count == 0

    def test_trailing_whitespace_trimmed(self, clock):
        state = HeartbeatState(time_func=clock)
        validated, response = _exchange(b"abc123 \r\n", state)
        assert validated is True
        assert response == b"OK\n"


class TestInvalidKey:
    def test_wrong_key(self, clock):
        state = HeartbeatState(time_func=clock)
        before = state.last_seen
        clock.advance(3)
        validated, response = _exchange(b"wrongkey\n", state)
        assert validated is False
        assert response == b"ERROR\n"
        assert state.last_seen == before

    def test_case_sensitive(self, clock):
        state = HeartbeatState(time_func=clock)
        validated, response = _exchange(b"ABC123\n", state)
        assert validated is False
        assert response == b"ERROR\n"

    def test_oversized_line_rejected(self, clock):
        state = HeartbeatState(time_func=clock)
        validated, response = _exchange(b"a" * 5000, state, close_writer=True)
        assert validated is False
        assert response == b"ERROR\n"


class TestReadFailure:
    def test_eof_before_newline_writes_nothing(self, clock):
        state = HeartbeatState(time_func=clock)
        before = state.last_seen
        clock.advance(1)
        validated, response = _exchange(b"abc123", state, close_writer=True)
        assert validated is False
        assert response == b""
        assert state.last_seen == before

    def test_connection_closed_after_handling(self, clock):
        state = HeartbeatState(time_func=clock)
        client, server_side = socket.socketpair()
        try:
            client.sendall(b"abc123\n")
            handle_connection(server_side, ADDR, "abc123", state)
            assert server_side.fileno() == -1
        finally:
            client.close()
