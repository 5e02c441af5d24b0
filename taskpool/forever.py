"""A worker pool that runs for ever, fed one task at a time."""

from __future__ import annotations

import argparse
import queue
import random
import sys
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from taskpool.pool import Result, TaskContext, retry_delay

DEFAULT_QUEUE_SIZE = 150
SUCCESS_VALUE = "✅ success"
SUBMIT_TIMEOUT_MESSAGE = "task submit timeout"
TASK_SUBMISSION_TIMEOUT = 3.0


@dataclass
class ContinuousTask:
    """A unit of work whose ``run`` returns nothing and raises on failure."""

    id: int
    run: Callable[[TaskContext], None]
    retries: int = 0
    timeout: float = 5.0


class ContinuousPool:
    """Workers that take tasks from a bounded queue and post to ``results``.

    Each task is attempted up to ``retries + 1`` times with back-off. A
    success posts a success result; if any attempt failed, the last error is
    posted as well. Each worker rests ``rate_limit`` seconds after a task.
    """

    def __init__(self, workers_count: int, rate_limit: float,
                 queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        if workers_count < 0:
            raise ValueError("workers_count must not be negative")
        if queue_size < 1:
            raise ValueError("queue_size must be at least 1")
        self.workers_count = workers_count
        self.rate_limit = max(0.0, rate_limit)
        self.tasks: "queue.Queue[ContinuousTask]" = queue.Queue(maxsize=queue_size)
        self.results: "queue.Queue[Optional[Result]]" = queue.Queue(maxsize=queue_size)
        self._dropped = 0
        self._dropped_lock = threading.Lock()
        self._rng = random.Random()
        self._rng_lock = threading.Lock()

    def start_workers(self) -> None:
        """Launch the worker threads; they run until the process exits."""
        for worker_id in range(self.workers_count):
            threading.Thread(target=self._worker, name=f"worker-{worker_id}",
                             daemon=True).start()

    def submit(self, task: ContinuousTask, timeout: float = TASK_SUBMISSION_TIMEOUT) -> bool:
        """Queue ``task``, waiting at most ``timeout`` seconds for room.

        On timeout the task is counted as dropped, a failure result is
        posted, and False is returned.
        """
        try:
            self.tasks.put(task, timeout=max(0.0, timeout))
        except queue.Full:
            with self._dropped_lock:
                self._dropped += 1
            self.results.put(
                Result(task_id=task.id, error=TimeoutError(SUBMIT_TIMEOUT_MESSAGE))
            )
            return False
        return True

    def dropped_task_count(self) -> int:
        with self._dropped_lock:
            return self._dropped

    def _wait_idle(self) -> None:
        self.tasks.join()

    def _worker(self) -> None:
        while True:
            task = self.tasks.get()
            try:
                self._process(task)
            finally:
                self.tasks.task_done()

    def _process(self, task: ContinuousTask) -> None:
        last_error: Optional[BaseException] = None
        for attempt in range(task.retries + 1):
            ctx = TaskContext(task.timeout)
            try:
                task.run(ctx)
            except Exception as err:  # noqa: BLE001 - any failure is retried
                with self._rng_lock:
                    delay = retry_delay(attempt, self._rng)
                time.sleep(delay)
                last_error = err
            else:
                self.results.put(Result(task_id=task.id, value=SUCCESS_VALUE))
                break
            finally:
                ctx.cancel()
        if last_error is not None:
            self.results.put(Result(task_id=task.id, error=last_error))
        time.sleep(self.rate_limit)


def launch_worker_pool(workers_count: int, rate_limit: float) -> ContinuousPool:
    """Create a pool with the default queue size and start its workers."""
    pool = ContinuousPool(workers_count, rate_limit, DEFAULT_QUEUE_SIZE)
    pool.start_workers()
    return pool


def rand_int(low: int, high: int, rng: Optional[random.Random] = None) -> int:
    """A random integer between ``low`` and ``high``, both included."""
    if high < low:
        raise ValueError("high must not be less than low")
    source = rng if rng is not None else random
    return low + source.randrange(high - low + 1)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskpool-forever",
        description="Feed simulated tasks to a worker pool until interrupted.",
    )
    parser.add_argument("--workers", type=int, default=10)
    parser.add_argument("--rate-limit", type=float, default=0.2,
                        help="seconds a worker rests after each task")
    parser.add_argument("--interval", type=float, default=3.0,
                        help="seconds between submissions")
    parser.add_argument("--report-interval", type=float, default=3.0,
                        help="seconds between reports of dropped tasks")
    parser.add_argument("--submit-timeout", type=float, default=TASK_SUBMISSION_TIMEOUT)
    parser.add_argument("--task-timeout", type=float, default=2.0)
    parser.add_argument("--delay-scale", type=float, default=1.0,
                        help="factor applied to the simulated work time")
    parser.add_argument("--count", type=int, default=None,
                        help="stop after this many tasks instead of running for ever")
    parser.add_argument("--seed", type=int, default=None)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = _parser()
    args = parser.parse_args(argv)
    if args.workers < 1:
        parser.error("--workers must be at least 1")
    if args.report_interval <= 0:
        parser.error("--report-interval must be positive")
    if args.count is not None and args.count < 0:
        parser.error("--count must not be negative")
    for name in ("rate_limit", "interval", "submit_timeout", "task_timeout", "delay_scale"):
        if getattr(args, name) < 0:
            parser.error(f"--{name.replace('_', '-')} must not be negative")

    rng = random.Random(args.seed)
    rng_lock = threading.Lock()
    pool = launch_worker_pool(args.workers, args.rate_limit)

    def listen() -> None:
        while (res := pool.results.get()) is not None:
            if res.error is not None:
                print(f"❌ Task #{res.task_id} failed: {res.error}", flush=True)
            else:
                print(f"✅ Task #{res.task_id} completed: {res.value}", flush=True)

    stop = threading.Event()

    def report() -> None:
        while not stop.wait(args.report_interval):
            print(f"{pool.dropped_task_count()} tasks have been dropped!" + "❌" * 11,
                  flush=True)

    def simulated(task_id: int) -> Callable[[TaskContext], None]:
        def run_task(ctx: TaskContext) -> None:
            print(f"🚀 Processing Task #{task_id}", flush=True)
            with rng_lock:
                delay_ms = 500 + rand_int(0, 1500, rng)
            if not ctx.wait(delay_ms / 1000.0 * args.delay_scale):
                raise TimeoutError("context deadline exceeded")
            with rng_lock:
                failed = rand_int(0, 10, rng) < 2
            if failed:
                raise RuntimeError("simulated task error")
        return run_task

    listener = threading.Thread(target=listen, daemon=True)
    listener.start()
    reporter = threading.Thread(target=report, daemon=True)
    reporter.start()

    task_id = 1
    try:
        while args.count is None or task_id <= args.count:
            task = ContinuousTask(id=task_id, run=simulated(task_id), retries=2,
                                  timeout=args.task_timeout)
            pool.submit(task, args.submit_timeout)
            task_id += 1
            if args.count is None or task_id <= args.count:
                time.sleep(args.interval)
        pool._wait_idle()
    except KeyboardInterrupt:
        pass
    finally:
        stop.set()
        pool.results.put(None)
        listener.join()
    return 0


if __name__ == "__main__":
    sys.exit(main())