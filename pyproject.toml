[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "clusterprep"
version = "0.1.0"
description = "Preflight checks, inventory validation and health monitoring for Kubernetes cluster nodes over SSH"
requires-python = ">=3.10"
keywords = ["kubernetes", "ssh", "preflight", "inventory", "health-check", "cluster"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "paramiko",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["clusterprep"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
