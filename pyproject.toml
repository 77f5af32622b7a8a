[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "socksnio"
version = "0.1.0"
description = "Building blocks for a non-blocking SOCKSv5 proxy: I/O buffer, byte parsers, selector and state machine"
requires-python = ">=3.10"
dependencies = []
keywords = ["socks", "socks5", "proxy", "selector", "non-blocking", "parser", "state machine"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Proxy Servers",
    "Topic :: System :: Networking",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["socksnio"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
