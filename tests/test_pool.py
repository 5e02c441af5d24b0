import queue
import random
import threading

import pytest

from taskpool.pool import Result, Task, TaskContext, WorkerPool, retry_delay


class _ZeroRng:
    def randrange(self, n):
        return 0


class _MaxRng:
    def randrange(self, n):
        return n - 1


def _drain(results):
    collected = []
    while True:
        item = results.get(timeout=5)
        if item is None:
            return collected
        collected.append(item)


def _ok_task(task_id, results, priority=0):
    return Task(
        id=task_id,
        run=lambda ctx: f"Task-{task_id} done",
        priority=priority,
        timeout=5.0,
        retries=0,
        result_queue=results,
    )


def test_retry_delay_base_without_jitter():
    assert retry_delay(0, _ZeroRng()) == pytest.approx(0.1)
    assert retry_delay(1, _ZeroRng()) == pytest.approx(0.2)


def test_retry_delay_jitter_bounds():
    rng = random.Random(1)
    for attempt in range(4):
        low = retry_delay(attempt, _ZeroRng())
        high = retry_delay(attempt, _MaxRng())
        value = retry_delay(attempt, rng)
        assert low <= value <= high
        assert high - low < 0.05


def test_retry_delay_doubles():
    assert retry_delay(3, _ZeroRng()) == pytest.approx(2 * retry_delay(2, _ZeroRng()))


def test_context_remaining_and_wait():
    ctx = TaskContext(5.0)
    assert 0 < ctx.remaining() <= 5.0
    assert not ctx.expired()
    assert ctx.wait(0.01) is True


def test_context_wait_interrupted_by_deadline():
    ctx = TaskContext(0.05)
    assert ctx.wait(1.0) is False
    assert ctx.expired()
    assert ctx.remaining() == 0.0


def test_context_cancel():
    ctx = TaskContext(5.0)
    ctx.cancel()
    assert ctx.expired()
    assert ctx.remaining() == 0.0
    assert ctx.wait(0.5) is False


def test_context_cancel_wakes_waiter():
    ctx = TaskContext(5.0)
    timer = threading.Timer(0.05, ctx.cancel)
    timer.start()
    assert ctx.wait(3.0) is False
    timer.join()


def test_zero_timeout_is_expired():
    assert TaskContext(0).expired()


def test_result_ok():
    assert Result(task_id=1, value="x").ok()
    assert not Result(task_id=1, error=ValueError("boom")).ok()


def test_all_tasks_complete():
    results = queue.Queue()
    pool = WorkerPool(4, 0.0, 10)
    pool.start()
    pool.submit([_ok_task(i, results, priority=i % 3) for i in range(10)])
    pool.stop(results)
    collected = _drain(results)
    assert sorted(r.task_id for r in collected) == list(range(10))
    assert all(r.ok() for r in collected)
    assert {r.value for r in collected} == {f"Task-{i} done" for i in range(10)}
    assert pool.dropped_task_count() == 0


def test_overflow_drops_lowest_priority(capsys):
    results = queue.Queue()
    pool = WorkerPool(2, 0.0, 2)
    tasks = [_ok_task(i, results, priority=p) for i, p in enumerate([1, 5, 0, 4, 2])]
    pool.submit(tasks)
    assert pool.dropped_task_count() == 3
    out = capsys.readouterr().out
    assert "Task 2 dropped due to queue overflow" in out
    assert "Task 1 dropped" not in out
    pool.start()
    pool.stop(results)
    assert sorted(r.task_id for r in _drain(results)) == [1, 3]


def test_retries_until_success():
    calls = []

    def flaky(ctx):
        calls.append(ctx)
        if len(calls) < 3:
            raise RuntimeError("random error")
        return "done"

    results = queue.Queue()
    pool = WorkerPool(1, 0.0, 1)
    pool.start()
    pool.submit([Task(id=7, run=flaky, timeout=1.0, retries=2, result_queue=results)])
    pool.stop(results)
    (result,) = _drain(results)
    assert result.ok()
    assert result.value == "done"
    assert len(calls) == 3
    assert all(isinstance(c, TaskContext) and c.expired() for c in calls)


def test_failure_reported_after_retries():
    err = ValueError("random error")
    attempts = []

    def failing(ctx):
        attempts.append(1)
        raise err

    results = queue.Queue()
    pool = WorkerPool(1, 0.0, 1)
    pool.start()
    pool.submit([Task(id=3, run=failing, timeout=1.0, retries=1, result_queue=results)])
    pool.stop(results)
    (result,) = _drain(results)
    assert result.error is err
    assert result.value is None
    assert len(attempts) == 2


def test_success_message(capsys):
    results = queue.Queue()
    pool = WorkerPool(1, 0.0, 1)
    pool.start()
    pool.submit([_ok_task(11, results)])
    pool.stop(results)
    _drain(results)
    assert "Worker 0: Task 11 success" in capsys.readouterr().out


def test_submit_after_stop_raises():
    pool = WorkerPool(1, 0.0, 1)
    pool.start()
    pool.stop(None)
    with pytest.raises(RuntimeError):
        pool.submit([_ok_task(1, None)])


def test_double_stop_raises():
    pool = WorkerPool(1, 0.0, 1)
    pool.start()
    pool.stop(None)
    with pytest.raises(RuntimeError):
        pool.stop(None)


@pytest.mark.parametrize("workers,size", [(-1, 1), (1, -1)])
def test_negative_arguments_rejected(workers, size):
    with pytest.raises(ValueError):
        WorkerPool(workers, 0.0, size)


def test_zero_queue_drops_everything():
    pool = WorkerPool(1, 0.0, 0)
    pool.submit([_ok_task(i, None) for i in range(3)])
    assert pool.dropped_task_count() == 3