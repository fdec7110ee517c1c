[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chordring"
version = "0.1.0"
description = "A Chord distributed hash table node that stores file references and moves files over HTTPS, plus sharding helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["chord", "dht", "distributed hash table", "peer-to-peer", "xml-rpc", "sharding"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
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
chordring = "chordring.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["chordring"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
