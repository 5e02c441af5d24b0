"""A fixed-size worker pool with priorities, timeouts, retries and back-off."""

from __future__ import annotations

import random
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional
import queue


class TaskContext:
    """Deadline and cancellation signal handed to a running task."""

    def __init__(self, timeout: float) -> None:
        self._deadline = time.monotonic() + max(0.0, timeout)
        self._cancelled = threading.Event()

    def remaining(self) -> float:
        """Seconds left before the deadline, never negative."""
        if self._cancelled.is_set():
            return 0.0
        return max(0.0, self._deadline - time.monotonic())

    def expired(self) -> bool:
        """True once the deadline has passed or the context was cancelled."""
        return self._cancelled.is_set() or time.monotonic() >= self._deadline

    def cancel(self) -> None:
        """End the context early."""
        self._cancelled.set()

    def wait(self, seconds: float) -> bool:
        """Sleep for ``seconds``; return False if the context ends first."""
        if self.expired():
            return False
        limit = min(max(0.0, seconds), self.remaining())
        if self._cancelled.wait(limit):
            return False
        return seconds <= limit


@dataclass
class Result:
    """Outcome of one task."""

    task_id: int
    value: Any = None
    error: Optional[BaseException] = None

    def ok(self) -> bool:
        return self.error is None


@dataclass
class Task:
    """A unit of work; ``run`` receives a TaskContext and raises on failure."""

    id: int
    run: Callable[[TaskContext], Any]
    priority: int = 0
    timeout: float = 5.0
    retries: int = 0
    result_queue: Optional["queue.Queue[Optional[Result]]"] = None


def retry_delay(attempt: int, rng: random.Random) -> float:
    """Back-off before the next attempt: 100ms doubled per attempt plus 0-49ms jitter."""
    base_ms = 100 * (1 << attempt)
    return (base_ms + rng.randrange(50)) / 1000.0


class _Channel:
    """Bounded, closable FIFO with a non-blocking send."""

    def __init__(self, capacity: int) -> None:
        self._items: deque = deque()
        self._capacity = capacity
        self._cond = threading.Condition()
        self._closed = False

    def offer(self, item: Any) -> bool:
        with self._cond:
            if self._closed:
                raise RuntimeError("task queue is closed")
            if len(self._items) >= self._capacity:
                return False
            self._items.append(item)
            self._cond.notify()
            return True

    def close(self) -> None:
        with self._cond:
            if self._closed:
                raise RuntimeError("task queue is already closed")
            self._closed = True
            self._cond.notify_all()

    def __iter__(self) -> Iterator[Any]:
        while True:
            with self._cond:
                while not self._items and not self._closed:
                    self._cond.wait()
                if not self._items:
                    return
                item = self._items.popleft()
            yield item


class WorkerPool:
    """Runs submitted tasks on a fixed number of worker threads.

    Tasks that do not fit in the queue at submission time are dropped and
    counted. Each worker waits ``rate_limit`` seconds before handing a task
    to its own handler thread, which retries failures with back-off.
    """

    def __init__(self, worker_count: int, rate_limit: float, queue_size: int) -> None:
        if worker_count < 0:
            raise ValueError("worker_count must not be negative")
        if queue_size < 0:
            raise ValueError("queue_size must not be negative")
        self._worker_count = worker_count
        self._rate_limit = max(0.0, rate_limit)
        self._tasks = _Channel(queue_size)
        self._workers: list[threading.Thread] = []
        self._handlers: list[threading.Thread] = []
        self._handlers_lock = threading.Lock()
        self._dropped = 0
        self._dropped_lock = threading.Lock()
        self._rng = random.Random()
        self._rng_lock = threading.Lock()

    def start(self) -> None:
        """Launch the worker threads."""
        for worker_id in range(self._worker_count):
            thread = threading.Thread(
                target=self._worker, args=(worker_id,), daemon=True
            )
            self._workers.append(thread)
            thread.start()

    def stop(self, results: Optional["queue.Queue[Optional[Result]]"]) -> None:
        """Close the queue, wait for every task, then put None on ``results``."""
        self._tasks.close()
        for thread in self._workers:
            thread.join()
        with self._handlers_lock:
            handlers = list(self._handlers)
        for thread in handlers:
            thread.join()
        if results is not None:
            results.put(None)

    def submit(self, tasks: list[Task]) -> None:
        """Queue tasks highest priority first; drop those that do not fit."""
        for task in sorted(tasks, key=lambda t: t.priority, reverse=True):
            if not self._tasks.offer(task):
                with self._dropped_lock:
                    self._dropped += 1
                print(f"Task {task.id} dropped due to queue overflow", flush=True)

    def dropped_task_count(self) -> int:
        with self._dropped_lock:
            return self._dropped

    def _worker(self, worker_id: int) -> None:
        for task in self._tasks:
            time.sleep(self._rate_limit)
            handler = threading.Thread(
                target=self._handle_task, args=(task, worker_id), daemon=True
            )
            with self._handlers_lock:
                self._handlers.append(handler)
            handler.start()

    def _handle_task(self, task: Task, worker_id: int) -> None:
        result = Result(task_id=task.id)
        for attempt in range(task.retries + 1):
            ctx = TaskContext(task.timeout)
            try:
                value = task.run(ctx)
            except Exception as err:  # noqa: BLE001 - any failure is retried
                result = Result(task_id=task.id, value=None, error=err)
                with self._rng_lock:
                    delay = retry_delay(attempt, self._rng)
                time.sleep(delay)
            else:
                result = Result(task_id=task.id, value=value, error=None)
                print(f"Worker {worker_id}: Task {task.id} success", flush=True)
                break
            finally:
                ctx.cancel()
        if task.result_queue is not None:
            task.result_queue.put(result)