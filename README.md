# taskpool

`taskpool` runs units of work on worker threads. Each task has a priority, a
per-attempt timeout and a retry budget. The package has no runtime dependencies.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## The batch pool: `taskpool.pool`

- `Task(id, run, priority=0, timeout=5.0, retries=0, result_queue=None)` describes
  one unit of work. `run` is called with a `TaskContext`. It returns a value on
  success and raises an exception on failure.
- `Result(task_id, value=None, error=None)` holds the final outcome of a task.
  `Result.ok()` is true when `error` is `None`.
- `WorkerPool(worker_count, rate_limit, queue_size)` uses the following methods:
  - `start()` launches `worker_count` worker threads.
  - `submit(tasks)` sorts the batch so that the highest priority comes first, then
    puts each task on a queue that holds at most `queue_size` tasks. A task that does
    not fit is not waited for. It is dropped, counted, and a
    `Task <id> dropped due to queue overflow` line is printed.
  - `dropped_task_count()` returns how many tasks were dropped.
  - `stop(results)` closes the queue and waits for the workers and for every
    running task to finish. It then puts `None` on `results` (when that is not
    `None`) to mark the end of the results.
- Each worker takes a task from the queue and sleeps `rate_limit` seconds. It then
  runs the task on a handler thread of its own.
- The handler makes up to `retries + 1` attempts. After each failed attempt it
  sleeps for `retry_delay(attempt, rng)`: 100 ms doubled for each attempt, plus a
  random jitter of 0–49 ms. On success it prints
  `Worker <n>: Task <id> success`. The final `Result` is put on the task's
  `result_queue`, if the task has one.
- `TaskContext(timeout)` is a fresh deadline for each attempt. It provides
  `remaining()`, `expired()`, `cancel()` and `wait(seconds)`. `wait` returns
  `False` if the deadline passes or the context is cancelled first. The pool does
  not interrupt a running task. A task that wants to honour its timeout has to
  consult its context.

Example:

```python
import queue
from taskpool.pool import Task, WorkerPool

results = queue.Queue()
pool = WorkerPool(worker_count=4, rate_limit=0.0, queue_size=10)
pool.start()
pool.submit([Task(id=i, run=lambda ctx, i=i: i * i, result_queue=results) for i in range(5)])
pool.stop(results)

while (r := results.get()) is not None:
    print(r.task_id, r.value)
```

`taskpool.cli.run(tasks, worker_count=8, rate_limit=0.1, out=None)` does the whole
sequence for you, with a queue large enough for every task. It writes
`Task <id> result: <value>` or `Task <id> failed: <error>` for each result, and
`Total dropped tasks: <n>` at the end. It returns the list of results and the
dropped count. The tasks passed in are left unchanged.

## Demo workload

- `taskpool.demo_specs.demo_specs()` returns the 100 fixed `DemoSpec` entries,
  ordered by id. Each entry has `task_id`, `priority`, `duration` in seconds,
  `timeout` (5 s) and `retries` (3).
- `find_spec(task_id)` looks up one entry and raises `KeyError` for an unknown id.
- `DemoSpec.label()` gives the success value `"Task-<id> done"`.
- `taskpool.demo_tasks.make_exec(task_id, duration, failure_rate=0.3, rng=None)`
  builds a task body. With probability `failure_rate` it raises
  `RuntimeError("random error")`. Otherwise it sleeps for `duration` and returns
  the label.
- `build_demo_tasks(failure_rate=0.3, rng=None)` turns every spec into a `Task`.

Run the demo batch:

```
taskpool [--workers 8] [--rate-limit 0.1] [--failure-rate 0.3] [--seed N]
```

## Continuous mode: `taskpool.forever`

- `ContinuousPool(workers_count, rate_limit, queue_size=150)` keeps its workers
  running until the process exits. `start_workers()` launches them.
- `launch_worker_pool(workers_count, rate_limit)` creates a pool with the default
  queue size and starts it.
- `submit(task, timeout=3.0)` waits up to `timeout` seconds for room in the queue.
  When no room appears in that time, the task is counted as dropped. A `Result`
  carrying `TimeoutError("task submit timeout")` is posted to `results`, and the
  method returns `False`.
- `dropped_task_count()` returns how many tasks have been dropped.
- A `ContinuousTask(id, run, retries=0, timeout=5.0)` is attempted up to
  `retries + 1` times, with the same back-off as the batch pool. A success posts a
  result with the value `"✅ success"`. If any attempt failed, the last error is
  also posted, even when a later attempt succeeded. After each task the worker
  rests `rate_limit` seconds.
- `rand_int(low, high, rng=None)` returns an integer in the range with both ends
  included.

The continuous demo submits a simulated task at each interval, and each task's work
takes 0.5–2 s. It prints every result and reports the number of dropped tasks
periodically. It runs until interrupted, or until `--count` tasks have been
submitted and processed:

```
taskpool-forever [--workers 10] [--rate-limit 0.2] [--interval 3] [--report-interval 3]
                 [--submit-timeout 3] [--task-timeout 2] [--delay-scale 1] [--count N] [--seed N]
```

## What it does not do

Tasks live only in memory. The package does not persist queued tasks or results,
and does not distribute work across processes or machines. Timeouts are advisory:
a task that ignores its `TaskContext` runs to completion.