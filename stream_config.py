"""
Stream Health configuration

Timeouts, player output markers and the verification profiles used by each
kind of check. Values here are defaults; the CLI overrides the per-run ones
(duration, player path).
"""

import shutil
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

# Player
DEFAULT_VLC_PATH = shutil.which('vlc') or '/Applications/VLC.app/Contents/MacOS/VLC'

# Network
CONNECT_TIMEOUT = 35
DEFAULT_RTMP_PORT = 1935
HTTP_USER_AGENT = 'StreamHealth/1.0'

# Playlist content that marks a segment reference
SEGMENT_MARKER = '.ts'

# VLC diagnostic lines
TS_LOCK_MARKER = 'Changing stream format Unknown -> TS'
DECODER_LOCK_MARKER = 'Raising max DPB to 3'
STREAM_ERROR_MARKER = 'stream error'

# Durations in seconds
DEFAULT_PULL_DURATION = 10
DEFAULT_PUSH_DURATION = 15
DEFAULT_LONG_PUSH_DURATION = 100
PULL_SUCCESS_GRACE = 5
PULL_TIMEOUT_GRACE = 10
PUSH_HARD_TIMEOUT = 35
LONG_PUSH_TIMEOUT_GRACE = 30
FAILURE_CONFIRM_DELAY = 5

# Teardown
KILL_WAIT_TIMEOUT = 5
READER_JOIN_TIMEOUT = 2


class Precedence(Enum):
    """How a failure marker and a success marker interact while pending."""
    FAILURE_OVERRIDES = "failure-overrides"
    FIRST_CONFIRMED = "first-confirmed"


@dataclass(frozen=True)
class MarkerRule:
    """A literal substring in player output and the verdict it leads to."""
    pattern: str
    verdict: bool
    confirm_delay: float

    def matches(self, line: str) -> bool:
        return self.pattern in line


@dataclass(frozen=True)
class VerificationProfile:
    """Marker rules and time limits for one kind of playback check."""
    name: str
    rules: Tuple[MarkerRule, ...]
    hard_timeout: float
    precedence: Precedence = Precedence.FAILURE_OVERRIDES


def pull_profile(duration: float = DEFAULT_PULL_DURATION) -> VerificationProfile:
    """HLS playback: hold a TS lock for duration + grace, give up at duration + 10s."""
    return VerificationProfile(
        name='pull',
        rules=(
            MarkerRule(TS_LOCK_MARKER, True, duration + PULL_SUCCESS_GRACE),
            MarkerRule(STREAM_ERROR_MARKER, False, FAILURE_CONFIRM_DELAY),
        ),
        hard_timeout=duration + PULL_TIMEOUT_GRACE,
    )


def push_profile(duration: float = DEFAULT_PUSH_DURATION) -> VerificationProfile:
    """RTMP playback with a fixed upper bound."""
    return VerificationProfile(
        name='push',
        rules=(
            MarkerRule(DECODER_LOCK_MARKER, True, duration),
            MarkerRule(STREAM_ERROR_MARKER, False, FAILURE_CONFIRM_DELAY),
        ),
        hard_timeout=max(PUSH_HARD_TIMEOUT, duration + FAILURE_CONFIRM_DELAY),
    )


def long_push_profile(duration: float = DEFAULT_LONG_PUSH_DURATION) -> VerificationProfile:
    """RTMP playback held open for a long soak. Only useful on a URL known to work."""
    return VerificationProfile(
        name='long-push',
        rules=(
            MarkerRule(DECODER_LOCK_MARKER, True, duration),
            MarkerRule(STREAM_ERROR_MARKER, False, FAILURE_CONFIRM_DELAY),
        ),
        hard_timeout=duration + LONG_PUSH_TIMEOUT_GRACE,
    )
