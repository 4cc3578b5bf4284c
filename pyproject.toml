[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "netoperator"
version = "0.1.0"
description = "Cluster network configuration checks, defaults and OVN-Kubernetes daemonset rollout decisions"
requires-python = ">=3.10"
keywords = ["kubernetes", "ovn", "network", "configuration", "rollout"]
classifiers = [
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Intended Audience :: System Administrators",
    "Topic :: System :: Networking",
]
dependencies = [
    "semver>=3",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pyyaml",
]

[tool.hatch.build.targets.wheel]
packages = ["netoperator"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
