"""
Stream Checks

Composes the probes and the playback verifier per stream type:
- Push (RTMP): server reachability, then playback of the stream path
- Pull (HLS): playlist availability, then playback of the playlist
- Full test: one push and one pull check running side by side
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from playback_verifier import PlaybackVerifier
from stream_config import (
    CONNECT_TIMEOUT,
    DEFAULT_LONG_PUSH_DURATION,
    DEFAULT_PULL_DURATION,
    DEFAULT_PUSH_DURATION,
    DEFAULT_VLC_PATH,
    VerificationProfile,
    long_push_profile,
    pull_profile,
    push_profile,
)
from stream_probes import PlaylistProbe, check_reachable
from stream_target import StreamTarget

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PushCheckResult:
    server_reachable: bool
    stream_playable: bool


@dataclass(frozen=True)
class PullCheckResult:
    playlist_available: bool
    stream_playable: bool


@dataclass(frozen=True)
class FullTestResult:
    push: PushCheckResult
    pull: PullCheckResult

    def as_tuple(self) -> Tuple[bool, bool, bool, bool]:
        return (
            self.push.server_reachable,
            self.push.stream_playable,
            self.pull.playlist_available,
            self.pull.stream_playable,
        )


def _run_push_check(url: str, profile: VerificationProfile, player_path: str,
                    player_args: Sequence[str], launcher,
                    reachable: Callable[[str, int, float], bool]) -> PushCheckResult:
    target = StreamTarget.push(url)

    if not reachable(target.host, target.port, CONNECT_TIMEOUT):
        return PushCheckResult(server_reachable=False, stream_playable=False)

    logger.info(f"Stream path {target.path or '/'} will be checked next, launching player..")
    verifier = PlaybackVerifier(player_path, launcher=launcher, player_args=player_args)
    session = verifier.verify(target.url, profile)
    return PushCheckResult(server_reachable=True, stream_playable=session.playable)


def check_push_stream(url: str, player_path: str = DEFAULT_VLC_PATH,
                      duration: float = DEFAULT_PUSH_DURATION, player_args: Sequence[str] = (),
                      launcher=None, reachable=check_reachable) -> PushCheckResult:
    """
    Check an RTMP server and the validity of its stream path.

    The server is dialled first. An unreachable server short-circuits to
    (False, False) and no player is launched.
    """
    return _run_push_check(url, push_profile(duration), player_path, player_args, launcher, reachable)


def check_long_push_stream(url: str, player_path: str = DEFAULT_VLC_PATH,
                           duration: float = DEFAULT_LONG_PUSH_DURATION, player_args: Sequence[str] = (),
                           launcher=None, reachable=check_reachable) -> PushCheckResult:
    """Same as check_push_stream but holds playback open for a long soak (100s by default)."""
    return _run_push_check(url, long_push_profile(duration), player_path, player_args, launcher, reachable)


def check_pull_stream(url: str, player_path: str = DEFAULT_VLC_PATH,
                      duration: float = DEFAULT_PULL_DURATION, player_args: Sequence[str] = (),
                      launcher=None, playlist_probe: Optional[PlaylistProbe] = None) -> PullCheckResult:
    """
    Check an HLS playlist over HTTP, then play it.

    A missing or segment-less playlist short-circuits to playable=False and
    no player is launched.
    """
    target = StreamTarget.pull(url)
    probe = playlist_probe or PlaylistProbe()

    if not probe.check(target.url):
        return PullCheckResult(playlist_available=False, stream_playable=False)

    verifier = PlaybackVerifier(player_path, launcher=launcher, player_args=player_args)
    session = verifier.verify(target.url, pull_profile(duration))
    return PullCheckResult(playlist_available=True, stream_playable=session.playable)


def run_full_test(push_url: str, pull_url: str, duration: float = DEFAULT_PULL_DURATION,
                  player_path: str = DEFAULT_VLC_PATH, player_args: Sequence[str] = (),
                  launcher=None, reachable=check_reachable,
                  playlist_probe: Optional[PlaylistProbe] = None) -> FullTestResult:
    """
    Run the RTMP and HLS checks simultaneously and wait for both.

    Each check gets its own player process; nothing is shared between them.
    Both URLs are parsed up front so bad input fails before anything starts.
    """
    StreamTarget.push(push_url)
    StreamTarget.pull(pull_url)

    with ThreadPoolExecutor(max_workers=2) as executor:
        push_future = executor.submit(
            check_push_stream, push_url, player_path,
            player_args=player_args, launcher=launcher, reachable=reachable,
        )
        pull_future = executor.submit(
            check_pull_stream, pull_url, player_path, duration,
            player_args=player_args, launcher=launcher, playlist_probe=playlist_probe,
        )

        push_result = push_future.result()
        logger.info("RTMP Check COMPLETE")
        pull_result = pull_future.result()
        logger.info("HLS Check Completed")

    return FullTestResult(push=push_result, pull=pull_result)
