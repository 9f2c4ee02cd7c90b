"""
Unit tests for the TCP acceptor.
"""

import socket
import threading

from tinyhttpd.core.acceptor import Acceptor


class FlakyListener:
    """Listening socket whose first accept() fails like EMFILE would."""

    def __init__(self, sock: socket.socket):
        self.sock = sock
        self.failures = 1

    def accept(self):
        if self.failures:
            self.failures -= 1
            raise OSError(24, "Too many open files")
        return self.sock.accept()

    def close(self):
        self.sock.close()


def run_in_thread(acceptor: Acceptor, on_connection) -> threading.Thread:
    thread = threading.Thread(target=acceptor.serve, args=(on_connection,), daemon=True)
    thread.start()
    assert acceptor.wait_until_listening(timeout=5.0)
    return thread


class TestAcceptor:
    """Tests for Acceptor."""

    def test_bind_reports_address(self):
        acceptor = Acceptor(port=0, accept_timeout=0.1)
        try:
            assert acceptor.bind()
            host, port = acceptor.address
            assert host == "127.0.0.1"
            assert port > 0
        finally:
            acceptor.shutdown()
            acceptor.serve(lambda sock, addr: sock.close())

    def test_connection_reaches_callback(self):
        acceptor = Acceptor(port=0, accept_timeout=0.1)
        assert acceptor.bind()
        accepted = threading.Event()

        def on_connection(sock, address):
            sock.close()
            accepted.set()

        thread = run_in_thread(acceptor, on_connection)
        try:
            with socket.create_connection(acceptor.address, timeout=5.0):
                assert accepted.wait(timeout=5.0)
        finally:
            acceptor.shutdown()
            thread.join(timeout=5.0)

        assert not thread.is_alive()
        assert not acceptor.is_running

    def test_accept_error_is_logged_and_loop_continues(self, caplog):
        """Test that one failed accept() does not stop the service."""
        acceptor = Acceptor(port=0, accept_timeout=0.1)
        assert acceptor.bind()
        listener = FlakyListener(acceptor._socket)
        acceptor._socket = listener
        accepted = threading.Event()

        def on_connection(sock, address):
            sock.close()
            accepted.set()

        with caplog.at_level("WARNING", logger="tinyhttpd.core.acceptor"):
            thread = run_in_thread(acceptor, on_connection)
            try:
                with socket.create_connection(acceptor.address, timeout=5.0):
                    assert accepted.wait(timeout=5.0)
            finally:
                acceptor.shutdown()
                thread.join(timeout=5.0)

        assert listener.failures == 0
        warnings = [r for r in caplog.records if r.levelname == "WARNING"]
        assert any("Accept error" in r.getMessage() for r in warnings)

    def test_shutdown_before_serve(self):
        """Test that a shutdown requested before serve() ends it at once."""
        acceptor = Acceptor(port=0, accept_timeout=0.1)
        acceptor.shutdown()

        assert acceptor.serve(lambda sock, addr: sock.close()) is True
        assert not acceptor.is_running
