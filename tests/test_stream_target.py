import pytest

from stream_target import InvalidTargetError, StreamTarget


class TestPushTarget:
    def test_host_port_and_path(self):
        target = StreamTarget.push("rtmp://1.1.1.1:1935/streampath")

        assert target.kind == 'push'
        assert target.address == ('1.1.1.1', 1935)
        assert target.path == '/streampath'
        assert target.url == "rtmp://1.1.1.1:1935/streampath"

    def test_default_port(self):
        target = StreamTarget.push("rtmp://live.example.com/app/key")
        assert target.address == ('live.example.com', 1935)
        assert target.path == '/app/key'

    def test_no_path(self):
        target = StreamTarget.push("rtmp://localhost:1936")
        assert target.address == ('localhost', 1936)
        assert target.path == ''

    @pytest.mark.parametrize("url", [
        "",
        "live.example.com/app",
        "https://live.example.com/app",
        "rtmp://live.example.com:99999/app",
    ])
    def test_rejected(self, url):
        with pytest.raises(InvalidTargetError):
            StreamTarget.push(url)

    def test_immutable(self):
        target = StreamTarget.push("rtmp://live.example.com/app")
        with pytest.raises(AttributeError):
            target.host = 'other'


class TestPullTarget:
    def test_raw_url_kept(self):
        url = "https://cdn.example.com/hls/stream.m3u8?token=abc"
        target = StreamTarget.pull(url)

        assert target.kind == 'pull'
        assert target.url == url
        assert target.host == ''

    @pytest.mark.parametrize("url", ["not a url", "rtmp://cdn.example.com/hls/stream.m3u8"])
    def test_rejected(self, url):
        with pytest.raises(InvalidTargetError):
            StreamTarget.pull(url)
