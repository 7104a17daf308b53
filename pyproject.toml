[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "deckhand"
version = "0.1.0"
description = "Stream Deck control server with pluggable button components, profiles and a MessagePack-RPC interface"
requires-python = ">=3.10"
keywords = ["streamdeck", "macro-keypad", "profiles", "msgpack-rpc", "zeromq"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Hardware",
]
dependencies = [
    "msgpack",
    "pillow",
    "pyzmq",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
deckhand = "deckhand.engine:main"

[tool.hatch.build.targets.wheel]
packages = ["deckhand"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
