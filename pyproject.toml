[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fobdecode"
version = "0.1.0"
description = "Decoders for Subaru, Suzuki and VW key fob pulse trains, with a capture history and Flipper-style key documents"
requires-python = ">=3.10"
dependencies = []
keywords = ["sub-ghz", "key fob", "decoder", "manchester", "radio", "flipper"]
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
    "Topic :: Communications :: Ham Radio",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["fobdecode"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 99
target-version = "py310"
