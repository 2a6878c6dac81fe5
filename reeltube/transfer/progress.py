"""
Upload Progress

Workers report each completed part to a ProgressTracker, which keeps the
counters and notifies observers with an UploadProgress snapshot. The
tracker is purely advisory: observers cannot change what the transfer
does, and an observer that raises is logged and ignored.

ETA = parts remaining * (elapsed / parts completed), rounded to seconds.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadProgress:
    """Point-in-time view of an upload."""
    total_parts: int
    completed_parts: int = 0
    bytes_uploaded: int = 0
    elapsed_seconds: float = 0.0
    last_part_number: Optional[int] = None

    @property
    def remaining_parts(self) -> int:
        return self.total_parts - self.completed_parts

    @property
    def progress(self) -> float:
        """Progress as 0.0 to 1.0."""
        if self.total_parts == 0:
            return 1.0
        return self.completed_parts / self.total_parts

    @property
    def progress_percent(self) -> float:
        """Progress as percentage."""
        return self.progress * 100

    @property
    def eta_seconds(self) -> Optional[int]:
        """Estimated seconds remaining, None until a part has completed."""
        if self.completed_parts == 0:
            return None
        per_part = self.elapsed_seconds / self.completed_parts
        return round(self.remaining_parts * per_part)

    @property
    def speed_bytes_per_sec(self) -> float:
        """Upload speed in bytes/second."""
        if self.elapsed_seconds == 0:
            return 0
        return self.bytes_uploaded / self.elapsed_seconds

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'total_parts': self.total_parts,
            'completed_parts': self.completed_parts,
            'bytes_uploaded': self.bytes_uploaded,
            'progress_percent': self.progress_percent,
            'eta_seconds': self.eta_seconds,
            'speed_bytes_per_sec': self.speed_bytes_per_sec,
            'elapsed_seconds': self.elapsed_seconds,
        }


# Progress callback type
ProgressCallback = Callable[[UploadProgress], None]


def format_eta(seconds: Optional[int]) -> str:
    """Format an ETA as e.g. '1m05s'."""
    if seconds is None:
        return 'ETA: --'
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"ETA: {hours}h{minutes:02d}m{secs:02d}s"
    if minutes:
        return f"ETA: {minutes}m{secs:02d}s"
    return f"ETA: {secs}s"


def format_parts(progress: UploadProgress) -> str:
    """Format part counts as e.g. '3/10 parts'."""
    return f"{progress.completed_parts}/{progress.total_parts} parts"


class ProgressTracker:
    """
    Thread-safe part completion counter.

    Observers are called while the tracker's lock is held, so they see
    completed_parts strictly increasing even when workers finish together.
    The lock is reentrant: an observer may call snapshot().

    Usage:
        tracker = ProgressTracker(total_parts=3)
        tracker.subscribe(print)
        tracker.part_completed(1, 4 * 1024 * 1024)
    """

    def __init__(self, total_parts: int,
                 clock: Callable[[], float] = time.monotonic):
        self.total_parts = total_parts
        self.completed_parts = 0
        self.bytes_uploaded = 0
        self._clock = clock
        self._start: Optional[float] = None
        self._observers: List[ProgressCallback] = []
        self._lock = threading.RLock()

    def subscribe(self, callback: Optional[ProgressCallback]):
        if callback is not None:
            self._observers.append(callback)

    def start(self):
        """Mark the transfer start; elapsed time is measured from here."""
        with self._lock:
            self._start = self._clock()
            self._notify(self._snapshot())

    def snapshot(self) -> UploadProgress:
        with self._lock:
            return self._snapshot()

    def part_completed(self, part_number: int, size: int) -> UploadProgress:
        """Record one finished part and notify observers."""
        with self._lock:
            if self._start is None:
                self._start = self._clock()
            self.completed_parts += 1
            self.bytes_uploaded += size
            progress = self._snapshot(part_number)
            self._notify(progress)
        return progress

    def _snapshot(self, last_part_number: Optional[int] = None) -> UploadProgress:
        elapsed = 0.0 if self._start is None else self._clock() - self._start
        return UploadProgress(
            total_parts=self.total_parts,
            completed_parts=self.completed_parts,
            bytes_uploaded=self.bytes_uploaded,
            elapsed_seconds=elapsed,
            last_part_number=last_part_number,
        )

    def _notify(self, progress: UploadProgress):
        for callback in self._observers:
            try:
                callback(progress)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")
