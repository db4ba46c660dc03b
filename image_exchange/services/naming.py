import base64
import threading
import time
from typing import Callable


class FilenameGenerator:
    """Builds ``image-<base64 nanosecond timestamp><extension>`` names.

    Timestamps are forced to be strictly increasing within the process, so two
    calls never encode the same instant even when the clock does not advance.
    """

    prefix = "image-"

    def __init__(self, clock: Callable[[], int] = time.time_ns) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._last = 0

    def _next_timestamp(self) -> int:
        with self._lock:
            now = self._clock()
            if now <= self._last:
                now = self._last + 1
            self._last = now
            return now

    def generate(self, extension: str) -> str:
        encoded = base64.b64encode(str(self._next_timestamp()).encode("ascii")).decode("ascii")
        return f"{self.prefix}{encoded}{extension}"
