[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "spongenet"
version = "0.1.0"
description = "User-space networking utilities: zero-copy buffers, network-byte-order parsing, Internet checksum, IPv4 addresses, counted file descriptors, sockets, TUN/TAP devices and a poll-based event loop"
requires-python = ">=3.10"
dependencies = []
keywords = ["networking", "sockets", "tun", "tap", "event-loop", "poll", "checksum", "parser", "buffer"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["spongenet"]

[tool.pytest.ini_options]
addopts = "-ra"
