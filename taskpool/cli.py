"""Run the demonstration tasks through a worker pool and report every result."""

from __future__ import annotations

import argparse
import queue
import random
import sys
import threading
from dataclasses import replace
from typing import Optional, TextIO

from taskpool.demo_specs import FAILURE_RATE
from taskpool.demo_tasks import build_demo_tasks
from taskpool.pool import Result, Task, WorkerPool

WORKER_COUNT = 8
RATE_LIMIT = 0.1


def run(
    tasks: list[Task],
    worker_count: int = WORKER_COUNT,
    rate_limit: float = RATE_LIMIT,
    out: Optional[TextIO] = None,
) -> tuple[list[Result], int]:
    """Run ``tasks`` on a pool sized to hold them all and print each result.

    Returns the results in the order they arrived and the number of tasks
    the pool dropped. The caller's tasks are left unchanged.
    """
    stream = out if out is not None else sys.stdout
    results: "queue.Queue[Optional[Result]]" = queue.Queue()
    collected: list[Result] = []

    pool = WorkerPool(worker_count, rate_limit, len(tasks))
    pool.start()

    prepared = [replace(task, result_queue=results) for task in tasks]

    def consume() -> None:
        while (result := results.get()) is not None:
            collected.append(result)
            if result.ok():
                print(f"Task {result.task_id} result: {result.value}", file=stream, flush=True)
            else:
                print(f"Task {result.task_id} failed: {result.error}", file=stream, flush=True)

    consumer = threading.Thread(target=consume, daemon=True)
    consumer.start()

    pool.submit(prepared)
    pool.stop(results)
    consumer.join()

    dropped = pool.dropped_task_count()
    print(f"\nTotal dropped tasks: {dropped}", file=stream, flush=True)
    return collected, dropped


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskpool",
        description="Run the demonstration tasks through a prioritised worker pool.",
    )
    parser.add_argument("--workers", type=int, default=WORKER_COUNT,
                        help="number of worker threads (default: %(default)s)")
    parser.add_argument("--rate-limit", type=float, default=RATE_LIMIT,
                        help="seconds each worker waits before starting a task "
                             "(default: %(default)s)")
    parser.add_argument("--failure-rate", type=float, default=FAILURE_RATE,
                        help="chance that a task attempt fails (default: %(default)s)")
    parser.add_argument("--seed", type=int, default=None,
                        help="seed for the random failures")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = _parser()
    args = parser.parse_args(argv)
    if args.workers < 1:
        parser.error("--workers must be at least 1")
    if args.rate_limit < 0:
        parser.error("--rate-limit must not be negative")
    try:
        tasks = build_demo_tasks(args.failure_rate, random.Random(args.seed))
    except ValueError as err:
        parser.error(str(err))
    run(tasks, args.workers, args.rate_limit, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())