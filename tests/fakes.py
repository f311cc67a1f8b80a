"""In-memory stand-ins for the player process used by the verifier tests."""

import queue
import threading


class FakeStream:
    """readline() source fed from a queue; '' marks EOF."""

    def __init__(self, lines=()):
        self._lines = queue.Queue()
        self._ended = False
        self._lock = threading.Lock()
        self.feed(*lines)

    def feed(self, *lines):
        for line in lines:
            self._lines.put(line + '\n')

    def end(self):
        with self._lock:
            if self._ended:
                return
            self._ended = True
        self._lines.put('')

    def readline(self):
        return self._lines.get()


class FakeProcess:
    """A player that prints the given lines, then runs until killed (or exits if told to)."""

    def __init__(self, stdout=(), stderr=(), exits=False, kill_error=None):
        self.stdout = FakeStream(stdout)
        self.stderr = FakeStream(stderr)
        self.kill_error = kill_error
        self.kill_count = 0
        self.closed = False
        if exits:
            self.exit()

    def exit(self):
        self.stdout.end()
        self.stderr.end()

    def kill(self):
        self.kill_count += 1
        self.exit()
        if self.kill_error is not None:
            raise self.kill_error

    def close(self):
        self.closed = True

    @property
    def terminated(self):
        return self.kill_count > 0


class FakeLauncher:
    """Hands out prepared FakeProcess objects and records every argv."""

    def __init__(self, *processes, error=None):
        self._processes = list(processes)
        self._lock = threading.Lock()
        self.error = error
        self.launches = []

    def launch(self, argv):
        with self._lock:
            self.launches.append(list(argv))
            if self.error is not None:
                raise self.error
            return self._processes.pop(0)
