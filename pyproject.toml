[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "codesctl"
version = "1.0.0"
description = "Project linking, Claude project discovery, notifications, an agent notification monitor and SSH remote host helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["claude", "projects", "notifications", "ssh", "webhook", "agents"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["codesctl"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
