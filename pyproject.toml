[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "distlab"
version = "0.1.0"
description = "Checked value encoding, a linearizability checker, key/value model and messages, and MapReduce helpers for distributed-systems work"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "distributed-systems",
    "linearizability",
    "porcupine",
    "mapreduce",
    "key-value",
    "serialization",
]
classifiers = [
    "Development Status :: 4 - Beta",
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
    "Topic :: Software Development :: Testing",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
distlab-mrsequential = "distlab.mr.sequential:main"

[tool.hatch.build.targets.wheel]
packages = ["distlab"]

[tool.hatch.build.targets.sdist]
include = ["distlab", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
