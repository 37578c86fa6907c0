"""Run-once helper owned by its caller.

``OnceTracker`` remembers which tokens have already run.  It is an ordinary object with an
explicit lifecycle: whoever needs run-once behaviour creates one and keeps it, there is no
process-wide tracker.
"""

import threading
from collections.abc import Callable


class OnceTracker:
    """Mutex-guarded set of executed tokens."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._tokens: set[str] = set()
        self._timers: dict[str, threading.Timer] = {}

    def once(self, token: str, block: Callable[[], None]) -> bool:
        """Run ``block`` unless ``token`` already ran. Returns True if it ran now."""
        with self._lock:
            if token in self._tokens:
                return False
            self._tokens.add(token)
            block()
            return True

    def once_within(self, interval: float, token: str, block: Callable[[], None]) -> bool:
        """Like ``once`` but the token expires ``interval`` seconds after it ran."""
        with self._lock:
            if token in self._tokens:
                return False
            self._tokens.add(token)
            timer = threading.Timer(interval, self._expire, args=(token,))
            timer.daemon = True
            self._timers[token] = timer
            timer.start()
            block()
            return True

    def has_run(self, token: str) -> bool:
        with self._lock:
            return token in self._tokens

    def reset(self, token: str | None = None) -> None:
        """Forget ``token``, or every token when None."""
        with self._lock:
            tokens = [token] if token is not None else list(self._tokens)
            for t in tokens:
                self._tokens.discard(t)
                timer = self._timers.pop(t, None)
                if timer is not None:
                    timer.cancel()

    def _expire(self, token: str) -> None:
        with self._lock:
            self._tokens.discard(token)
            self._timers.pop(token, None)
