import socket
import time
from unittest.mock import Mock

import pytest
import requests

from stream_probes import PlaylistProbe, check_reachable


@pytest.fixture
def closed_port():
    """A local port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(('127.0.0.1', 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


@pytest.fixture
def listening_port():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(('127.0.0.1', 0))
    sock.listen(1)
    yield sock.getsockname()[1]
    sock.close()


def make_session(status_code=200, text=""):
    response = Mock()
    response.status_code = status_code
    response.text = text
    session = Mock()
    session.headers = {}
    session.get.return_value = response
    return session


class TestReachabilityProbe:
    def test_closed_port_is_unreachable(self, closed_port):
        start = time.monotonic()
        assert check_reachable('127.0.0.1', closed_port, timeout=2) is False
        assert time.monotonic() - start < 2.5

    def test_listening_port_is_reachable(self, listening_port):
        assert check_reachable('127.0.0.1', listening_port, timeout=2) is True

    def test_unresolvable_host(self):
        assert check_reachable('host.invalid', 1935, timeout=2) is False


class TestPlaylistProbe:
    def test_segment_reference_found(self):
        probe = PlaylistProbe(session=make_session(text="#EXTM3U\nsegment0.ts\n"))
        assert probe.check("https://example.com/live.m3u8") is True

    def test_no_segment_reference(self):
        probe = PlaylistProbe(session=make_session(text="#EXTM3U\n"))
        assert probe.check("https://example.com/live.m3u8") is False

    def test_marker_anywhere_in_body_counts(self):
        probe = PlaylistProbe(session=make_session(text="#EXTM3U\n# see notes.ts for details\n"))
        assert probe.check("https://example.com/live.m3u8") is True

    def test_repeated_checks_are_stable(self):
        probe = PlaylistProbe(session=make_session(text="#EXTM3U\n#EXTINF:6.0,\nseg_001.ts\n"))
        assert [probe.check("https://example.com/live.m3u8") for _ in range(3)] == [True, True, True]

    def test_non_ok_status(self):
        probe = PlaylistProbe(session=make_session(status_code=404, text="not found .ts"))
        assert probe.check("https://example.com/live.m3u8") is False

    def test_request_error(self):
        session = make_session()
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        probe = PlaylistProbe(session=session)

        assert probe.check("https://example.com/live.m3u8") is False

    def test_timeout_is_passed_through(self):
        session = make_session(text="a.ts")
        PlaylistProbe(session=session, timeout=7).check("https://example.com/live.m3u8")

        session.get.assert_called_once_with("https://example.com/live.m3u8", timeout=7)

    def test_user_agent_set(self):
        session = make_session()
        PlaylistProbe(session=session)
        assert session.headers['User-Agent'].startswith('StreamHealth/')
