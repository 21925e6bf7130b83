[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tinyredis"
version = "0.1.0"
description = "Building blocks for a Redis-compatible key-value store: RESP parsing and replies, data structures, a keyspace with expiry, and append-only file persistence"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "redis",
    "resp",
    "key-value",
    "database",
    "aof",
    "skiplist",
    "backlog",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tinyredis"]

[tool.hatch.build.targets.sdist]
include = ["tinyredis", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
