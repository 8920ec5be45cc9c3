"""Short-lived user-facing messages."""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class Notice:
    text: str
    level: str
    posted_at: float


class NoticeBoard:
    """Holds at most one message, which expires after ``display_seconds``."""

    def __init__(self, display_seconds: float = 5.0, clock: Callable[[], float] = time.monotonic):
        self.display_seconds = display_seconds
        self._clock = clock
        self._notice: Optional[Notice] = None
        self._lock = threading.Lock()

    def post(self, text: str, level: str = 'info') -> Notice:
        notice = Notice(text=text, level=level, posted_at=self._clock())
        with self._lock:
            self._notice = notice
        return notice

    def clear(self) -> None:
        with self._lock:
            self._notice = None

    def current(self) -> Optional[Notice]:
        with self._lock:
            notice = self._notice
            if notice is None:
                return None
            if self._clock() - notice.posted_at >= self.display_seconds:
                self._notice = None
                return None
            return notice
