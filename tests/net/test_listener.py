#
# Licensed to the Apache Software Foundation (ASF) under one or more
# contributor license agreements.  See the NOTICE file distributed with
# this work for additional information regarding copyright ownership.
# The ASF licenses this file to You under the Apache License, Version 2.0
# (the "License"); you may not use this file except in compliance with
# the License.  You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
import errno
import threading
from unittest import mock

import pytest

from rawnet.common.types import SocketAddr
from rawnet.exceptions import ErrorKind, ResolutionError, SocketError
from rawnet.net import Incoming, Socket, TcpListener, TcpStream


class TestTcpListenerBind:
    """
    Tests for TcpListener.bind.
    """

    def test_local_addr_round_trip(self, listener):
        local = listener.local_addr()
        assert isinstance(local, SocketAddr)
        assert local.host == "127.0.0.1"
        assert local.port != 0
        assert listener.socket.get_sock_name() == local

    def test_address_in_use(self, listener):
        with pytest.raises(SocketError) as excinfo:
            TcpListener.bind(listener.local_addr())
        assert excinfo.value.kind is ErrorKind.ADDR_IN_USE

    def test_address_forms(self):
        for address in ("127.0.0.1:0", ("127.0.0.1", 0), SocketAddr("127.0.0.1", 0), ["127.0.0.1:0"]):
            with TcpListener.bind(address) as lst:
                assert lst.local_addr().port != 0

    def test_first_working_candidate_wins(self, listener):
        with TcpListener.bind([listener.local_addr(), ("127.0.0.1", 0)]) as lst:
            assert lst.local_addr() != listener.local_addr()

    def test_every_candidate_failing_raises_last_error(self, listener):
        taken = listener.local_addr()
        with pytest.raises(SocketError) as excinfo:
            TcpListener.bind([taken, taken._replace(host="192.0.2.1")])
        # 192.0.2.1 is a documentation address no interface carries
        assert excinfo.value.kind is ErrorKind.ADDR_NOT_AVAILABLE

    def test_failed_candidates_are_closed(self, listener):
        created = []
        original_new = Socket.new

        def _new(family):
            sock = original_new(family)
            created.append(sock)
            return sock

        with mock.patch.object(Socket, "new", side_effect=_new):
            with pytest.raises(SocketError):
                TcpListener.bind(listener.local_addr())

        assert len(created) == 1
        assert created[0].closed

    def test_options_reach_the_socket(self):
        inner = mock.MagicMock(spec=Socket)
        inner.bind.return_value = SocketAddr("127.0.0.1", 4000)

        with mock.patch.object(Socket, "new", return_value=inner):
            TcpListener.bind("127.0.0.1:4000", backlog=7, reuse_address=False)

        inner.set_reuse_address.assert_not_called()
        inner.bind.assert_called_once_with(("127.0.0.1", 4000))
        inner.listen.assert_called_once_with(7)

    def test_reuse_address_by_default(self):
        inner = mock.MagicMock(spec=Socket)

        with mock.patch.object(Socket, "new", return_value=inner):
            TcpListener.bind("127.0.0.1:4000")

        inner.set_reuse_address.assert_called_once_with(True)
        inner.listen.assert_called_once_with(128)

    def test_unresolvable(self):
        with pytest.raises(ResolutionError):
            TcpListener.bind("127.0.0.1")


class TestTcpListenerAccept:
    """
    Tests for TcpListener.accept and close.
    """

    def test_accept(self, listener):
        with TcpStream.connect(listener.local_addr()) as client:
            stream, peer = listener.accept()
            with stream:
                assert peer == client.local_addr()
                client.write_all(b"hi")
                assert stream.read_exact(2) == b"hi"

    def test_accept_closes_connection_if_peer_lookup_fails(self):
        conn = mock.MagicMock(spec=Socket)
        conn.get_peer_name.side_effect = SocketError(errno.ENOTCONN)
        inner = mock.MagicMock(spec=Socket)
        inner.accept.return_value = conn

        with pytest.raises(SocketError):
            TcpListener(inner).accept()
        conn.close.assert_called_once_with()

    def test_close_unblocks_accept(self, listener):
        errors = []

        def _accept():
            try:
                listener.accept()
            except SocketError as e:
                errors.append(e)

        thread = threading.Thread(target=_accept, daemon=True)
        thread.start()
        thread.join(0.2)
        assert thread.is_alive()

        listener.close()
        thread.join(5)

        assert not thread.is_alive()
        assert len(errors) == 1
        assert listener.closed

    def test_close_is_idempotent(self, listener):
        listener.close()
        listener.close()
        assert listener.closed
        with pytest.raises(SocketError) as excinfo:
            listener.local_addr()
        assert excinfo.value.errno == errno.EBADF


class TestIncomingLoopback:
    """
    Tests for Incoming over real connections.
    """

    def test_yields_usable_streams(self, listener):
        clients = [TcpStream.connect(listener.local_addr()) for _ in range(3)]
        incoming = listener.incoming()
        try:
            for i, client in enumerate(clients):
                stream = next(incoming)
                with stream:
                    assert isinstance(stream, TcpStream)
                    client.write_all(bytes([i]))
                    assert stream.read_exact(1) == bytes([i])
                    stream.write_all(b"ok")
                    assert client.read_exact(2) == b"ok"
        finally:
            for client in clients:
                client.close()

    def test_does_not_consume_listener(self, listener):
        incoming = listener.incoming()
        assert iter(incoming) is incoming
        assert incoming.listener is listener
        assert listener.incoming() is not incoming
        assert not listener.closed

    def test_stops_on_closed_listener(self, listener):
        listener.close()
        assert list(listener.incoming()) == []

    def test_stops_when_closed_while_blocked(self, listener):
        accepted = []

        def _iterate():
            for stream in listener.incoming():
                accepted.append(stream)
                stream.close()

        thread = threading.Thread(target=_iterate, daemon=True)
        thread.start()
        with TcpStream.connect(listener.local_addr()) as client:
            client.write_all(b"x")
            thread.join(0.2)

        listener.close()
        thread.join(5)

        assert not thread.is_alive()
        assert len(accepted) == 1


class TestIncomingErrors:
    """
    Tests for accept error handling, with a fake listener.
    """

    @pytest.fixture
    def fake_listener(self):
        lst = mock.MagicMock(spec=TcpListener)
        lst.closed = False
        return lst

    @pytest.fixture
    def sleep(self):
        with mock.patch("rawnet.net._listener.time.sleep") as mock_sleep:
            yield mock_sleep

    @staticmethod
    def _accepted():
        return mock.MagicMock(spec=TcpStream), SocketAddr("127.0.0.1", 5000)

    @pytest.mark.parametrize("code", [errno.ECONNABORTED, errno.ECONNRESET, errno.ENOTCONN, errno.EPERM])
    def test_per_connection_errors_are_retried(self, fake_listener, sleep, code):
        stream, peer = self._accepted()
        fake_listener.accept.side_effect = [SocketError(code), SocketError(code), (stream, peer)]

        assert next(Incoming(fake_listener)) is stream
        assert fake_listener.accept.call_count == 3
        sleep.assert_not_called()

    def test_resource_exhaustion_backs_off(self, fake_listener, sleep):
        emfile = SocketError(errno.EMFILE)
        fake_listener.accept.side_effect = [emfile, emfile, emfile, self._accepted(), emfile, self._accepted()]
        incoming = Incoming(fake_listener)

        next(incoming)
        assert [c.args[0] for c in sleep.call_args_list] == [0.005, 0.01, 0.02]

        # A successful accept resets the delay
        next(incoming)
        assert sleep.call_args_list[-1].args[0] == 0.005

    def test_back_off_is_capped(self, fake_listener, sleep):
        fake_listener.accept.side_effect = [SocketError(errno.ENFILE)] * 12 + [self._accepted()]

        next(Incoming(fake_listener))

        assert max(c.args[0] for c in sleep.call_args_list) == 1.0

    def test_fatal_error_is_raised_once(self, fake_listener, sleep):
        fake_listener.accept.side_effect = SocketError(errno.EINVAL)
        incoming = Incoming(fake_listener)

        with pytest.raises(SocketError) as excinfo:
            next(incoming)
        assert excinfo.value.errno == errno.EINVAL

        with pytest.raises(StopIteration):
            next(incoming)
        assert fake_listener.accept.call_count == 1

    def test_error_after_close_ends_iteration(self, fake_listener, sleep):
        def _closed_during_accept():
            fake_listener.closed = True
            raise SocketError(errno.EINVAL)

        fake_listener.accept.side_effect = _closed_during_accept

        assert list(Incoming(fake_listener)) == []
