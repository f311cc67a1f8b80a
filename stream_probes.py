"""
Stream Probes

One-shot network checks that run before a player is launched:
- Reachability: can a TCP connection to the stream server be opened?
- Playlist: does the HLS playlist answer 200 OK and reference segments?
"""

import logging
import socket
from typing import Optional

import requests

from stream_config import CONNECT_TIMEOUT, HTTP_USER_AGENT, SEGMENT_MARKER

logger = logging.getLogger(__name__)


def check_reachable(host: str, port: int, timeout: float = CONNECT_TIMEOUT) -> bool:
    """
    Open and immediately close a TCP connection to host:port.

    This checks the server only, never the stream path:
    for rtmp://1.1.1.1:1935/live only 1.1.1.1:1935 is dialled.

    Returns:
        True if the connection was established before the timeout
    """
    try:
        with socket.create_connection((host, port), timeout=timeout):
            pass
    except OSError as e:
        logger.error(f"Error connecting to {host}:{port}: {e}")
        return False

    logger.info(f"Connected to server {host}:{port}")
    return True


class PlaylistProbe:
    """Fetches an HLS playlist and looks for segment references"""

    def __init__(self, session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': HTTP_USER_AGENT})

    def check(self, url: str) -> bool:
        """
        GET the playlist and scan the body for the segment marker.

        Any text containing the marker counts, even incidentally; this is a
        presence check, not manifest parsing.

        Returns:
            True if the response is 200 OK and the body contains '.ts'
        """
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Error during HTTP request: {e}")
            return False

        try:
            if response.status_code != 200:
                logger.error(f"Playlist not found, HTTP status: {response.status_code}")
                return False

            playlist_content = response.text
        except requests.exceptions.RequestException as e:
            logger.error(f"Error reading the response: {e}")
            return False
        finally:
            response.close()

        if SEGMENT_MARKER in playlist_content:
            logger.info("HLS Streaming Status: up")
            return True

        logger.info("HLS Streaming Status: down")
        return False
