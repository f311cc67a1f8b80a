"""Stream endpoint descriptors for push (RTMP) and pull (HLS) checks."""

from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlsplit

import validators

from stream_config import DEFAULT_RTMP_PORT

PUSH_SCHEMES = ('rtmp', 'rtmps')
PULL_SCHEMES = ('http', 'https')


class InvalidTargetError(ValueError):
    """The URL cannot be used as a stream target."""


@dataclass(frozen=True)
class StreamTarget:
    """A parsed stream URL. Push targets also carry host, port and path."""
    url: str
    kind: str
    host: str = ""
    port: Optional[int] = None
    path: str = ""

    @property
    def address(self) -> Tuple[str, int]:
        return self.host, self.port

    @classmethod
    def push(cls, url: str) -> 'StreamTarget':
        """
        Parse an RTMP URL into its server address and stream path.

        rtmp://1.1.1.1:1935/live/key -> host 1.1.1.1, port 1935, path /live/key.
        The port defaults to 1935 when the URL omits it.

        Raises:
            InvalidTargetError: URL is malformed or not rtmp/rtmps
        """
        parts = _split(url, PUSH_SCHEMES)
        try:
            port = parts.port or DEFAULT_RTMP_PORT
        except ValueError as e:
            raise InvalidTargetError(f"Invalid port in {url}: {e}") from e
        return cls(url=url, kind='push', host=parts.hostname, port=port, path=parts.path)

    @classmethod
    def pull(cls, url: str) -> 'StreamTarget':
        """
        Wrap an HLS playlist URL. The URL is used as-is.

        Raises:
            InvalidTargetError: URL is malformed or not http/https
        """
        _split(url, PULL_SCHEMES)
        return cls(url=url, kind='pull')


def _split(url: str, schemes: Tuple[str, ...]):
    if not url or not validators.url(url, simple_host=True):
        raise InvalidTargetError(f"Invalid URL format: {url!r}")

    parts = urlsplit(url)
    if parts.scheme.lower() not in schemes:
        raise InvalidTargetError(
            f"Expected a {'/'.join(schemes)} URL, got {parts.scheme}://"
        )
    if not parts.hostname:
        raise InvalidTargetError(f"No host in {url}")
    return parts
