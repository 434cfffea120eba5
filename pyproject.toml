[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fusekit"
version = "0.1.0"
description = "Low-level building blocks for FUSE file systems: kernel protocol structures, message buffers and mounting."
requires-python = ">=3.10"
dependencies = []
keywords = ["fuse", "filesystem", "mount", "fusermount", "osxfuse", "kernel protocol"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Operating System :: MacOS",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["fusekit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
