"""A timing wheel that runs jobs after a delay, and a shared default wheel."""

from __future__ import annotations

import itertools
import threading
import time
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple, Union

from respkit import logger

Duration = Union[float, int, timedelta]
Job = Callable[[], object]


def _seconds(value: Duration) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


class _Task:
    __slots__ = ("key", "job", "circle")

    def __init__(self, key: str, job: Job, circle: int) -> None:
        self.key = key
        self.job = job
        self.circle = circle


def _run_job(job: Job) -> None:
    try:
        job()
    except Exception as exc:  # a failing job must not disturb the wheel
        logger.error(exc)


class TimeWheel:
    """Runs jobs after a delay, with a resolution of one ``interval``."""

    def __init__(self, interval: Duration, slot_num: int) -> None:
        seconds = _seconds(interval)
        if seconds <= 0 or slot_num <= 0:
            raise ValueError("interval and slot_num must be positive")
        self.interval = seconds
        self.slot_num = slot_num
        self._slots: List[Dict[int, _Task]] = [{} for _ in range(slot_num)]
        self._timer: Dict[str, Tuple[int, int]] = {}
        self._ids = itertools.count()
        self._pos = 0
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start ticking in a background thread."""
        with self._lock:
            if self._thread is not None:
                raise RuntimeError("time wheel already started")
            self._stop.clear()
            self._thread = threading.Thread(target=self._run, name="timewheel", daemon=True)
            self._thread.start()

    def stop(self) -> None:
        """Stop ticking; pending jobs stay in place."""
        with self._lock:
            thread, self._thread = self._thread, None
        if thread is None:
            return
        self._stop.set()
        if thread is not threading.current_thread():
            thread.join()

    def add_job(self, delay: Duration, key: str, job: Job) -> None:
        """Schedule a job; a job with the same non-empty key is replaced."""
        seconds = _seconds(delay)
        if seconds < 0:
            return
        with self._lock:
            steps = int(seconds / self.interval)
            circle = steps // self.slot_num
            pos = (self._pos + steps) % self.slot_num
            task_id = next(self._ids)
            self._slots[pos][task_id] = _Task(key, job, circle)
            if key:
                self._remove_locked(key)
                self._timer[key] = (pos, task_id)

    def remove_job(self, key: str) -> None:
        """Cancel a pending job; nothing happens if it is done or unknown."""
        if not key:
            return
        with self._lock:
            self._remove_locked(key)

    def _remove_locked(self, key: str) -> None:
        location = self._timer.pop(key, None)
        if location is None:
            return
        slot, task_id = location
        self._slots[slot].pop(task_id, None)

    def _run(self) -> None:
        deadline = time.monotonic() + self.interval
        while not self._stop.wait(max(0.0, deadline - time.monotonic())):
            deadline += self.interval
            self._tick()

    def _tick(self) -> None:
        due: List[Job] = []
        with self._lock:
            slot = self._slots[self._pos]
            self._pos = (self._pos + 1) % self.slot_num
            for task_id, task in list(slot.items()):
                if task.circle > 0:
                    task.circle -= 1
                    continue
                del slot[task_id]
                if task.key:
                    self._timer.pop(task.key, None)
                due.append(task.job)
        for job in due:
            threading.Thread(target=_run_job, args=(job,), daemon=True).start()


_default_lock = threading.Lock()
_default_wheel: Optional[TimeWheel] = None


def _wheel() -> TimeWheel:
    global _default_wheel
    with _default_lock:
        if _default_wheel is None:
            _default_wheel = TimeWheel(1.0, 3600)
            _default_wheel.start()
        return _default_wheel


def delay(duration: Duration, key: str, job: Job) -> None:
    """Run a job after the given duration on the shared wheel."""
    _wheel().add_job(duration, key, job)


def at(when: datetime, key: str, job: Job) -> None:
    """Run a job at the given time on the shared wheel."""
    _wheel().add_job(when - datetime.now(when.tzinfo), key, job)


def cancel(key: str) -> None:
    """Cancel a pending job on the shared wheel."""
    _wheel().remove_job(key)