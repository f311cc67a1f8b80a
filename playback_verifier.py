"""
Playback Verifier

Launches an external media player (VLC) against a stream URL and turns its
diagnostic output into one bounded-time verdict:
- Both output streams are scanned line by line on their own threads
- Lines are matched against an ordered list of success/failure markers
- A matched marker is only trusted after its confirmation delay
- The whole session races against a hard timeout
- The player is killed exactly once on every exit path

Usage:
    verifier = PlaybackVerifier('/usr/bin/vlc')
    result = verifier.verify('https://example.com/stream.m3u8', pull_profile(15))
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from player_process import (
    ProcessLaunchError,
    SubprocessLauncher,
    TeardownError,
    running_player,
)
from stream_config import (
    DECODER_LOCK_MARKER,
    DEFAULT_PUSH_DURATION,
    DEFAULT_VLC_PATH,
    FAILURE_CONFIRM_DELAY,
    STREAM_ERROR_MARKER,
    READER_JOIN_TIMEOUT,
    MarkerRule,
    Precedence,
    VerificationProfile,
)

logger = logging.getLogger(__name__)


class Outcome(Enum):
    """How a verification session concluded."""
    PLAYABLE = "✅ PLAYABLE"
    STREAM_ERROR = "❌ STREAM ERROR"
    PLAYER_EXITED = "❌ PLAYER EXITED"
    TIMEOUT = "⏱️ TIMEOUT"
    LAUNCH_FAILED = "❌ LAUNCH FAILED"
    TEARDOWN_FAILED = "⚠️ TEARDOWN FAILED"


@dataclass(frozen=True)
class SessionResult:
    """Verdict of one verification session."""
    url: str
    outcome: Outcome
    elapsed: float

    @property
    def playable(self) -> bool:
        return self.outcome is Outcome.PLAYABLE


class MarkerClassifier:
    """Ordered pattern -> rule lookup. The first matching rule wins."""

    def __init__(self, rules: Sequence[MarkerRule]):
        self.rules = tuple(rules)

    def classify(self, line: str) -> Optional[MarkerRule]:
        for rule in self.rules:
            if rule.matches(line):
                return rule
        return None


class _Confirmation:
    """A delayed commit that can be called off with its cancellation token."""

    def __init__(self, rule: MarkerRule, callback):
        self.rule = rule
        self.cancelled = threading.Event()
        self.timer = threading.Timer(rule.confirm_delay, callback, args=(self,))
        self.timer.daemon = True

    def cancel(self) -> None:
        self.cancelled.set()
        self.timer.cancel()


class VerdictArbiter:
    """
    Sole owner of a session's verdict.

    Scanner threads report markers and end-of-stream; confirmation timers
    report expiry; the session thread waits. Every state change happens under
    one lock, and the first commit sets the completion event. Anything
    arriving after that is ignored.
    """

    def __init__(self, precedence: Precedence = Precedence.FAILURE_OVERRIDES, open_streams: int = 2):
        self.precedence = precedence
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._pending: Dict[bool, _Confirmation] = {}
        self._open_streams = open_streams
        self._outcome: Optional[Outcome] = None

    @property
    def concluded(self) -> bool:
        return self._done.is_set()

    def pending(self) -> Tuple[bool, ...]:
        """Verdicts currently waiting on confirmation."""
        with self._lock:
            return tuple(self._pending)

    def on_marker(self, rule: MarkerRule) -> None:
        with self._lock:
            if self._outcome is not None or rule.verdict in self._pending:
                return

            if self.precedence is Precedence.FAILURE_OVERRIDES:
                if rule.verdict and False in self._pending:
                    logger.debug(f"Ignoring '{rule.pattern}' while a failure is being confirmed")
                    return
                if not rule.verdict and True in self._pending:
                    logger.info("Stream error reported during playback, cancelling success confirmation")
                    self._pending.pop(True).cancel()

            confirmation = _Confirmation(rule, self._on_confirmed)
            self._pending[rule.verdict] = confirmation
            logger.info(f"Player reported '{rule.pattern}', confirming in {rule.confirm_delay:g}s")
            confirmation.timer.start()

    def on_stream_closed(self) -> None:
        with self._lock:
            self._open_streams -= 1
            if self._open_streams > 0 or self._outcome is not None:
                return
            logger.warning("Player output closed before a verdict was reached")
            self._commit(Outcome.PLAYER_EXITED)

    def wait(self, timeout: float) -> Outcome:
        """Block until a verdict is committed or the timeout expires."""
        if not self._done.wait(timeout):
            with self._lock:
                if self._outcome is None:
                    logger.warning(f"Timeout reached after {timeout:g}s without a conclusive signal")
                    self._commit(Outcome.TIMEOUT)
        return self._outcome

    def _on_confirmed(self, confirmation: _Confirmation) -> None:
        with self._lock:
            if confirmation.cancelled.is_set() or self._outcome is not None:
                return
            if confirmation.rule.verdict:
                logger.info("Test successful, player received the signal.")
                self._commit(Outcome.PLAYABLE)
            else:
                logger.info("Test failed, player can't receive the signal.")
                self._commit(Outcome.STREAM_ERROR)

    def _commit(self, outcome: Outcome) -> None:
        # caller holds self._lock
        self._outcome = outcome
        for confirmation in self._pending.values():
            confirmation.cancel()
        self._pending.clear()
        self._done.set()


class PlaybackVerifier:
    """Runs verification sessions with one player executable"""

    def __init__(self, player_path: str, launcher=None, player_args: Sequence[str] = ()):
        self.player_path = player_path
        self.launcher = launcher or SubprocessLauncher()
        self.player_args = tuple(player_args)

    def verify(self, url: str, profile: VerificationProfile) -> SessionResult:
        """
        Play url in the external player and decide whether it is playable.

        Never raises for launch, stream or teardown problems: each of them
        concludes the session with a non-playable outcome.
        """
        start = time.monotonic()
        argv = [self.player_path, *self.player_args, url]
        arbiter = VerdictArbiter(profile.precedence)
        classifier = MarkerClassifier(profile.rules)
        process = None
        readers: List[threading.Thread] = []

        logger.info(f"Launching player for {url} ({profile.name}, timeout {profile.hard_timeout:g}s)")
        try:
            with running_player(self.launcher, argv) as process:
                readers = [
                    self._start_reader('stdout', process.stdout, classifier, arbiter),
                    self._start_reader('stderr', process.stderr, classifier, arbiter),
                ]
                outcome = arbiter.wait(profile.hard_timeout)
        except ProcessLaunchError as e:
            logger.error(str(e))
            outcome = Outcome.LAUNCH_FAILED
        except TeardownError as e:
            logger.error(str(e))
            outcome = Outcome.TEARDOWN_FAILED
        finally:
            if process is not None:
                self._drain(process, readers)

        elapsed = time.monotonic() - start
        logger.info(f"Playback check for {url}: {outcome.value} after {elapsed:.1f}s")
        return SessionResult(url=url, outcome=outcome, elapsed=elapsed)

    def _start_reader(self, channel: str, stream, classifier: MarkerClassifier,
                      arbiter: VerdictArbiter) -> threading.Thread:
        reader = threading.Thread(
            target=_scan_lines,
            args=(channel, stream, classifier, arbiter),
            name=f"player-{channel}",
            daemon=True,
        )
        reader.start()
        return reader

    @staticmethod
    def _drain(process, readers: List[threading.Thread]) -> None:
        """Wait briefly for the readers to hit EOF, then release the pipes."""
        for reader in readers:
            reader.join(READER_JOIN_TIMEOUT)
        if any(reader.is_alive() for reader in readers):
            # a grandchild may still hold the pipes open
            logger.warning("Player output readers still running, abandoning them")
            return
        process.close()


def _scan_lines(channel: str, stream, classifier: MarkerClassifier, arbiter: VerdictArbiter) -> None:
    try:
        for raw in iter(stream.readline, ''):
            line = raw.rstrip('\r\n')
            logger.debug(f"Player output ({channel}): {line}")
            rule = classifier.classify(line)
            if rule is not None:
                arbiter.on_marker(rule)
    except (OSError, ValueError) as e:
        logger.debug(f"Stopped reading player {channel}: {e}")
    finally:
        arbiter.on_stream_closed()


def verify_url(url: str, hard_timeout: float, nominal_duration: Optional[float] = None,
               player_path: str = DEFAULT_VLC_PATH, success_pattern: str = DECODER_LOCK_MARKER,
               failure_pattern: str = STREAM_ERROR_MARKER, launcher=None) -> bool:
    """
    Single-call form: one success marker held for nominal_duration, one
    failure marker confirmed after the usual short delay.

    Markers default to the RTMP ones and a missing nominal_duration to the
    push check's 15s, so a success marker is never trusted on sight.
    """
    if nominal_duration is None:
        nominal_duration = DEFAULT_PUSH_DURATION
    rules = []
    if success_pattern:
        rules.append(MarkerRule(success_pattern, True, nominal_duration))
    if failure_pattern:
        rules.append(MarkerRule(failure_pattern, False, FAILURE_CONFIRM_DELAY))
    profile = VerificationProfile(name='custom', rules=tuple(rules), hard_timeout=hard_timeout)
    return PlaybackVerifier(player_path, launcher=launcher).verify(url, profile).playable
