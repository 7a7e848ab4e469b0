"""Refresh cadence for the terminal monitor.

Three triggers feed one event queue:

1. File change notifications on the todo directories (watchfiles), which
   request a normal redraw and restart the forced-refresh countdown.
2. A ~1 Hz tick, which reports the remaining countdown and requests a
   forced redraw once the countdown runs out, in case a notification was
   missed or coalesced.
3. A polling fallback comparing modification times on every tick, used
   when native notifications cannot be set up or stop working.

The monitor loop is the only consumer; it drains the queue after each
wait and handles the events one at a time.
"""

import logging
import os
import threading
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, Optional, Protocol, Union

from watchfiles import Change, watch

from .config import MonitorConfig

logger = logging.getLogger(__name__)


class RefreshReason(str, Enum):
    CHANGE = "change"
    INTERVAL = "interval"


@dataclass(frozen=True)
class RefreshRequested:
    forced: bool
    reason: RefreshReason


@dataclass(frozen=True)
class CountdownTick:
    remaining: float


MonitorEvent = Union[RefreshRequested, CountdownTick]


class WatchUnavailableError(Exception):
    """Native change notification cannot be used for the configured paths."""


class ChangeSource(Protocol):
    def wait(self, timeout: float) -> bool:
        """Block up to timeout seconds; return True if relevant files changed."""
        ...

    def close(self) -> None: ...


def _is_snapshot_change(_change: Change, path: str) -> bool:
    return path.endswith(".json")


class NativeChangeSource:
    """Change notifications from the OS through watchfiles."""

    def __init__(self, paths: list[Path], tick_interval: float, debounce_ms: int = 50):
        existing = [p for p in paths if p.is_dir()]
        if not existing:
            raise WatchUnavailableError(
                "none of the watched directories exist: "
                + ", ".join(str(p) for p in paths)
            )
        self.paths = existing
        self._stop_event = threading.Event()
        self._changes: Iterator[set[tuple[Change, str]]] = watch(
            *existing,
            watch_filter=_is_snapshot_change,
            debounce=debounce_ms,
            step=50,
            rust_timeout=max(1, int(tick_interval * 1000)),
            yield_on_timeout=True,
            stop_event=self._stop_event,
            recursive=False,
        )

    def wait(self, timeout: float) -> bool:
        # The timeout is fixed when the watch starts (rust_timeout)
        try:
            changes = next(self._changes)
        except StopIteration:
            return False
        return bool(changes)

    def close(self) -> None:
        self._stop_event.set()
        close = getattr(self._changes, "close", None)
        if close is not None:
            close()


class PollingChangeSource:
    """Detects changes by comparing modification times once per wait."""

    def __init__(
        self,
        current_file: Path,
        todos_dir: Path,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.current_file = current_file
        self.todos_dir = todos_dir
        self._sleep = sleep
        self._last_signature = self.signature()

    @staticmethod
    def _mtime_ns(path: Path) -> Optional[int]:
        try:
            return path.stat().st_mtime_ns
        except OSError:
            return None

    def _newest_snapshot_mtime_ns(self) -> Optional[int]:
        newest: Optional[int] = None
        try:
            with os.scandir(self.todos_dir) as entries:
                for entry in entries:
                    if not entry.name.endswith(".json"):
                        continue
                    try:
                        mtime = entry.stat().st_mtime_ns
                    except OSError:
                        continue
                    if newest is None or mtime > newest:
                        newest = mtime
        except OSError:
            return None
        return newest

    def signature(self) -> tuple[Optional[int], Optional[int], Optional[int]]:
        """Modification times that change whenever the snapshot data changes."""
        return (
            self._mtime_ns(self.current_file),
            self._mtime_ns(self.todos_dir),
            self._newest_snapshot_mtime_ns(),
        )

    def wait(self, timeout: float) -> bool:
        self._sleep(timeout)
        signature = self.signature()
        changed = signature != self._last_signature
        self._last_signature = signature
        return changed

    def close(self) -> None:
        pass


class Watcher:
    """Turns change notifications and clock ticks into monitor events."""

    def __init__(
        self,
        config: MonitorConfig,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        source: Optional[ChangeSource] = None,
    ):
        self.config = config
        self.clock = clock
        self.sleep = sleep
        self.source = source
        self._queue: deque[MonitorEvent] = deque()
        self._next_forced_at: Optional[float] = None

    @property
    def polling(self) -> bool:
        return isinstance(self.source, PollingChangeSource)

    @property
    def seconds_until_forced(self) -> float:
        if self._next_forced_at is None:
            return self.config.forced_refresh_interval
        return max(0.0, self._next_forced_at - self.clock())

    def _polling_source(self) -> PollingChangeSource:
        return PollingChangeSource(
            self.config.current_file, self.config.todos_dir, sleep=self.sleep
        )

    def _open_source(self) -> ChangeSource:
        if self.config.use_native_watch:
            try:
                return NativeChangeSource(
                    self.config.watch_paths, self.config.tick_interval
                )
            except (WatchUnavailableError, OSError, RuntimeError) as e:
                logger.info(f"Native file watching unavailable, polling instead: {e}")
        return self._polling_source()

    def start(self) -> None:
        """Open the change source and start the forced-refresh countdown."""
        if self.source is None:
            self.source = self._open_source()
        self.reset_countdown()

    def reset_countdown(self) -> None:
        self._next_forced_at = self.clock() + self.config.forced_refresh_interval

    def notify_change(self) -> None:
        """Queue a normal redraw and restart the forced-refresh countdown."""
        self.reset_countdown()
        self._queue.append(RefreshRequested(forced=False, reason=RefreshReason.CHANGE))

    def tick(self) -> None:
        """Queue a countdown update, or a forced redraw once the countdown ends."""
        if self._next_forced_at is None:
            self.reset_countdown()
        remaining = self.seconds_until_forced
        if remaining <= 0:
            self._queue.append(
                RefreshRequested(forced=True, reason=RefreshReason.INTERVAL)
            )
            self.reset_countdown()
        else:
            self._queue.append(CountdownTick(remaining=remaining))

    def drain(self) -> list[MonitorEvent]:
        events = list(self._queue)
        self._queue.clear()
        return events

    def _wait_for_change(self) -> bool:
        assert self.source is not None
        try:
            return self.source.wait(self.config.tick_interval)
        except (OSError, RuntimeError) as e:
            if self.polling:
                raise
            logger.warning(f"File watching failed, switching to polling: {e}")
            self.source.close()
            self.source = self._polling_source()
            return False

    def wait(self) -> list[MonitorEvent]:
        """Block for at most one tick, then return the queued events."""
        if self.source is None:
            self.start()
        if self._wait_for_change():
            self.notify_change()
        self.tick()
        return self.drain()

    def close(self) -> None:
        if self.source is not None:
            self.source.close()
