[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ustask"
version = "0.1.0"
description = "A user-space task scheduler with a hierarchical timer wheel, tid bitmap, locks, I/O queues and workload benchmarks"
requires-python = ">=3.10"
dependencies = []
keywords = ["scheduler", "coroutines", "timer wheel", "user threads", "benchmark"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ustask-examples = "ustask.examples:main"
ustask-benchmark = "ustask.benchmark:main"
ustask-threaded = "ustask.threaded:main"

[tool.hatch.build.targets.wheel]
packages = ["ustask"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
