import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

@dataclass(eq=False)
class TimerHandle:
    """A deferred callback that can be cancelled until it fires"""
    due: float
    callback: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    @property
    def pending(self) -> bool:
        return not self.cancelled and not self.fired

    def cancel(self):
        self.cancelled = True

class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

class ManualScheduler:
    """
    A scheduler driven by an explicit clock.
    Time only moves when advance() is called, so deferred callbacks can be
    tested without waiting.
    """
    def __init__(self, now: float = 0.0):
        self.now = now
        self.timers: list[TimerHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(due=self.now + max(0.0, delay), callback=callback)
        self.timers.append(handle)
        return handle

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due callbacks in due order. Returns the number fired."""
        self.now += seconds
        return self.run_due()

    def run_due(self) -> int:
        fired = 0
        while True:
            due = [timer for timer in self.timers if timer.pending and timer.due <= self.now]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            timer.fired = True
            timer.callback()
            fired += 1
        self.timers = [timer for timer in self.timers if timer.pending]
        return fired

    def next_due(self) -> Optional[float]:
        pending = [timer.due for timer in self.timers if timer.pending]
        return min(pending) if pending else None

    @property
    def pending_count(self) -> int:
        return sum(1 for timer in self.timers if timer.pending)

class MonotonicScheduler(ManualScheduler):
    """
    A scheduler that follows the real clock.
    The host loop calls poll() to fire whatever is due; nothing runs on other threads.
    """
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        super().__init__(clock())

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        self.now = self.clock()
        return super().call_later(delay, callback)

    def poll(self) -> int:
        self.now = self.clock()
        return self.run_due()

    def wait_for_pending(self) -> int:
        """Sleep until the next pending callback is due, then fire it"""
        due = self.next_due()
        if due is None:
            return 0
        remaining = due - self.clock()
        if remaining > 0:
            time.sleep(remaining)
        return self.poll()
