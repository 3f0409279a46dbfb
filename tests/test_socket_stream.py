import select
import socket

import pytest

from keyedarchive.socket_stream import SocketStream


@pytest.fixture
def pair():
    left, right = socket.socketpair()
    stream = SocketStream(left)
    yield stream, left, right
    stream.close()
    right.close()


def _wait_readable(sock):
    select.select([sock], [], [], 2)


def test_read_returns_received_bytes(pair):
    stream, _, peer = pair
    peer.sendall(b"abcdefgh")
    assert stream.read(4, 2) == b"abcdefgh"
    assert stream.tell() == 8


def test_write_reaches_peer(pair):
    stream, _, peer = pair
    assert stream.write(b"abcd", 2) == 2
    assert peer.recv(16) == b"abcd"
    assert stream.tell() == 4


def test_zero_sized_read(pair):
    stream, _, _ = pair
    assert stream.read(0, 5) == b""
    assert not stream.eof()


def test_peer_close_sets_eof(pair):
    stream, _, peer = pair
    peer.close()
    assert stream.read(1, 4) == b""
    assert stream.eof()


def test_readline(pair):
    stream, _, peer = pair
    peer.sendall(b"hello\nworld")
    assert stream.readline(100) == b"hello\n"
    assert stream.readline(3) == b"wor"


def test_readline_raises_on_closed_connection(pair):
    stream, _, peer = pair
    peer.sendall(b"ab")
    peer.close()
    with pytest.raises(EOFError):
        stream.readline(10)


def test_readline_rejects_bad_limit(pair):
    stream, _, _ = pair
    with pytest.raises(ValueError):
        stream.readline(0)


def test_readable(pair):
    stream, sock, peer = pair
    assert stream.readable() is False
    peer.sendall(b"x")
    _wait_readable(sock)
    assert stream.readable() is True
    assert stream.read(1) == b"x"


def test_capabilities(pair):
    stream, _, _ = pair
    assert stream.writable() is True
    assert stream.seekable() is False


def test_closed_stream_operations_raise(pair):
    stream, _, _ = pair
    stream.close()
    assert stream.eof()
    with pytest.raises(ValueError):
        stream.read(1)
    with pytest.raises(ValueError):
        stream.write(b"x")


def test_context_manager_closes():
    left, right = socket.socketpair()
    with SocketStream(left) as stream:
        assert stream.write(b"hi") == 2
    assert stream.eof()
    assert left.fileno() == -1
    right.close()


def test_connect_to_listening_server():
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    port = server.getsockname()[1]
    try:
        with SocketStream.connect("127.0.0.1", port) as stream:
            conn, _ = server.accept()
            with conn:
                conn.sendall(b"ping\n")
                assert stream.readline(16) == b"ping\n"
                stream.write(b"pong")
                assert conn.recv(16) == b"pong"
    finally:
        server.close()


def test_connect_refused():
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    with pytest.raises(OSError):
        SocketStream.connect("127.0.0.1", port)


def test_non_blocking_not_supported():
    with pytest.raises(ValueError):
        SocketStream.connect("127.0.0.1", 1, blocking=False)