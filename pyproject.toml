[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mcproxy"
version = "0.1.0"
description = "Scanner, parser and rule model for the configuration language of an IGMP/MLD multicast proxy"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "multicast",
    "igmp",
    "mld",
    "proxy",
    "configuration",
    "parser",
    "filter",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["mcproxy"]

[tool.hatch.build.targets.sdist]
include = [
    "mcproxy",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
