# src/sharedfactor/progress.py
from __future__ import annotations

import sys
import threading
import time


class Progress:
    """Throttled one-line progress bar; update() may be called from worker threads."""

    def __init__(self, total: int = 1, *, enabled: bool = True, label: str = "", stream=None):
        self.total = max(1, int(total))
        self.enabled = enabled
        self.label = label
        self.stream = stream or sys.stdout
        self.start = time.perf_counter()
        self.last_draw = 0.0
        self.spin = "|/-\\"
        self.i = 0
        self._lock = threading.Lock()

    def update(self, done: int, total: int | None = None):
        THROTTLE = 0.05
        if not self.enabled:
            return
        with self._lock:
            if total is not None:
                self.total = max(1, int(total))
            now = time.perf_counter()
            if now - self.last_draw < THROTTLE and done < self.total:  # throttle to avoid flicker
                return
            self.last_draw = now
            self.i = (self.i + 1) % len(self.spin)
            frac = min(max(done / self.total, 0.0), 1.0)
            pct = int(frac * 100)
            bar_len = 24
            fill = int(frac * bar_len)
            bar = "#" * fill + "-" * (bar_len - fill)
            msg = f"\r[{self.spin[self.i]}] [{bar}] {pct:3d}%  {self.label[:40]} {done}/{self.total}"
            self.stream.write(msg)
            self.stream.flush()

    # engine progress callbacks are called as progress(done, total)
    __call__ = update

    def done(self):
        if not self.enabled:
            return
        self.stream.write("\r" + " " * 80 + "\r")
        self.stream.flush()
