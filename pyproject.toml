[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "streampipe"
version = "0.1.0"
description = "Multi-threaded staged pipeline for streaming JSON events from files, sockets and simulated sensors"
requires-python = ">=3.10"
dependencies = []
keywords = ["pipeline", "streaming", "json", "threads", "events"]
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
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
streampipe = "streampipe.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["streampipe"]

[tool.pytest.ini_options]
addopts = "-ra"
