"""The fixed set of demonstration tasks: identifiers, priorities and run times."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

DEFAULT_TIMEOUT = 5.0
DEFAULT_RETRIES = 3
FAILURE_RATE = 0.3

# (priority, simulated duration in milliseconds), listed by task id.
_TABLE: tuple[tuple[int, int], ...] = (
    (2, 137), (4, 482), (1, 215), (3, 321), (0, 178),
    (2, 456), (1, 92), (4, 387), (3, 264), (0, 143),
    (2, 498), (3, 187), (1, 423), (4, 156), (2, 389),
    (0, 245), (3, 432), (1, 178), (4, 321), (2, 267),
    (0, 498), (3, 143), (1, 376), (4, 234), (2, 412),
    (0, 189), (3, 456), (1, 267), (4, 321), (2, 178),
    (0, 498), (3, 143), (1, 376), (4, 234), (2, 412),
    (0, 189), (3, 456), (1, 267), (4, 321), (2, 178),
    (0, 498), (3, 143), (1, 376), (4, 234), (2, 412),
    (0, 189), (3, 456), (1, 267), (4, 321), (2, 178),
    (1, 198), (3, 342), (0, 456), (2, 123), (4, 287),
    (1, 412), (3, 156), (0, 498), (2, 234), (4, 321),
    (1, 178), (3, 456), (0, 267), (2, 389), (4, 145),
    (1, 432), (3, 276), (0, 198), (2, 354), (4, 412),
    (1, 167), (3, 289), (0, 376), (2, 143), (4, 498),
    (1, 234), (3, 321), (0, 456), (2, 189), (4, 267),
    (3, 412), (1, 156), (4, 378), (0, 291), (2, 467),
    (3, 103), (1, 324), (4, 245), (2, 189), (0, 431),
    (3, 276), (1, 498), (4, 112), (2, 367), (0, 204),
    (3, 489), (1, 157), (4, 332), (2, 278), (0, 421),
)


@dataclass(frozen=True)
class DemoSpec:
    """Description of one demonstration task; ``duration`` is in seconds."""

    task_id: int
    priority: int
    duration: float
    timeout: float = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES

    def label(self) -> str:
        """The value the task returns when it succeeds."""
        return f"Task-{self.task_id} done"


@lru_cache(maxsize=1)
def demo_specs() -> tuple[DemoSpec, ...]:
    """All demonstration task specs, ordered by task id."""
    return tuple(
        DemoSpec(task_id=task_id, priority=priority, duration=millis / 1000.0)
        for task_id, (priority, millis) in enumerate(_TABLE)
    )


def find_spec(task_id: int) -> DemoSpec:
    """Return the spec with the given id; raise KeyError if there is none."""
    if isinstance(task_id, bool) or not isinstance(task_id, int):
        raise KeyError(task_id)
    if not 0 <= task_id < len(_TABLE):
        raise KeyError(task_id)
    return demo_specs()[task_id]