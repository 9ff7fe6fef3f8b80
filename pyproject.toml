[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "aivox"
version = "0.1.0"
description = "Building blocks for a voice assistant device: settings storage, IoT things, firmware update checks and display state"
requires-python = ">=3.10"
dependencies = []
keywords = ["voice assistant", "iot", "ota", "firmware", "display", "settings"]
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
    "Topic :: Communications",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["aivox"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
