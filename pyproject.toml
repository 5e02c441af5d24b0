[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "taskpool"
version = "0.1.0"
description = "A thread-based worker pool with task priorities, per-attempt deadlines, retries with exponential back-off and rate limiting."
requires-python = ">=3.10"
dependencies = []
keywords = ["worker pool", "thread pool", "tasks", "retries", "backoff", "rate limiting", "concurrency"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
taskpool = "taskpool.cli:main"
taskpool-forever = "taskpool.forever:main"

[tool.hatch.build.targets.wheel]
packages = ["taskpool"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
