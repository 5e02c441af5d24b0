"""Runnable demonstration tasks built from the fixed demo specs."""

from __future__ import annotations

import random
import time
from typing import Any, Callable, Optional

from taskpool.demo_specs import FAILURE_RATE, demo_specs
from taskpool.pool import Task, TaskContext


def _check_failure_rate(failure_rate: float) -> None:
    if not 0.0 <= failure_rate <= 1.0:
        raise ValueError("failure_rate must be between 0 and 1")


def make_exec(
    task_id: int,
    duration: float,
    failure_rate: float = FAILURE_RATE,
    rng: Optional[random.Random] = None,
) -> Callable[[TaskContext], Any]:
    """Build a task body that fails at random, otherwise sleeps and reports done.

    With probability ``failure_rate`` the body raises ``RuntimeError("random
    error")`` straight away; otherwise it sleeps ``duration`` seconds and
    returns ``"Task-<id> done"``.
    """
    _check_failure_rate(failure_rate)
    if duration < 0:
        raise ValueError("duration must not be negative")
    source = rng if rng is not None else random.Random()
    label = f"Task-{task_id} done"

    def run(ctx: TaskContext) -> str:
        if source.random() < failure_rate:
            raise RuntimeError("random error")
        time.sleep(duration)
        return label

    return run


def build_demo_tasks(
    failure_rate: float = FAILURE_RATE,
    rng: Optional[random.Random] = None,
) -> list[Task]:
    """Create one Task per demo spec, ordered by task id, with no result queue."""
    _check_failure_rate(failure_rate)
    source = rng if rng is not None else random.Random()
    return [
        Task(
            id=spec.task_id,
            run=make_exec(spec.task_id, spec.duration, failure_rate, source),
            priority=spec.priority,
            timeout=spec.timeout,
            retries=spec.retries,
            result_queue=None,
        )
        for spec in demo_specs()
    ]