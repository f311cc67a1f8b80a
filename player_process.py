"""
Player process handling

Spawns the external media player with both output streams piped and
guarantees it is killed exactly once, whatever way a check ends.
"""

import logging
import subprocess
import threading
from contextlib import contextmanager
from typing import Iterator, List, Sequence

from stream_config import KILL_WAIT_TIMEOUT

logger = logging.getLogger(__name__)


class ProcessLaunchError(Exception):
    """The player executable is missing or could not be started."""


class TeardownError(Exception):
    """The player could not be killed."""


class PlayerProcess:
    """A running player: two readable line streams and a one-shot kill."""

    def __init__(self, popen: subprocess.Popen, kill_wait: float = KILL_WAIT_TIMEOUT):
        self._popen = popen
        self._kill_wait = kill_wait
        self._kill_lock = threading.Lock()
        self._killed = False

    @property
    def pid(self) -> int:
        return self._popen.pid

    @property
    def stdout(self):
        return self._popen.stdout

    @property
    def stderr(self):
        return self._popen.stderr

    def kill(self) -> None:
        """
        Kill the player and reap it. Later calls do nothing.

        Raises:
            TeardownError: kill signal failed or the process did not exit
        """
        with self._kill_lock:
            if self._killed:
                return
            self._killed = True

        try:
            self._popen.kill()
            self._popen.wait(timeout=self._kill_wait)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise TeardownError(f"Error terminating player process {self.pid}: {e}") from e

        logger.debug(f"Player process {self.pid} terminated (exit code {self._popen.returncode})")

    def close(self) -> None:
        for stream in (self._popen.stdout, self._popen.stderr):
            if stream is not None:
                stream.close()


class SubprocessLauncher:
    """Starts the player with subprocess.Popen"""

    def launch(self, argv: Sequence[str]) -> PlayerProcess:
        """
        Raises:
            ProcessLaunchError: executable missing or not runnable
        """
        cmd: List[str] = list(argv)
        try:
            popen = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,  # VLC logs to stderr
                text=True,
                errors='replace',
                bufsize=1,
            )
        except (OSError, ValueError) as e:
            raise ProcessLaunchError(f"Error starting {cmd[0]}: {e}") from e

        logger.debug(f"Started player process {popen.pid}: {' '.join(cmd)}")
        return PlayerProcess(popen)


@contextmanager
def running_player(launcher, argv: Sequence[str]) -> Iterator[PlayerProcess]:
    """
    Launch the player for the duration of a with-block and kill it on exit.

    The kill runs on normal exit, on exceptions and on KeyboardInterrupt.
    A failed kill surfaces as TeardownError.
    """
    process = launcher.launch(argv)
    try:
        yield process
    finally:
        process.kill()
