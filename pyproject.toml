[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rbxdom"
version = "0.1.0"
description = "Binary model format primitives, rotation ids and tools for building a reflection database of classes and properties"
requires-python = ">=3.10"
keywords = ["binary", "model", "file-format", "reflection", "api-dump", "zigzag"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: File Formats",
    "Typing :: Typed",
]
dependencies = [
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["rbxdom"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
