[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "keywarp"
version = "1.3.5"
description = "Modal, keyboard-driven pointer control: normal, hint, grid and history modes over a pluggable display platform."
requires-python = ">=3.10"
dependencies = []
keywords = ["keyboard", "mouse", "pointer", "hints", "grid", "modal", "accessibility"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Desktop Environment",
    "Topic :: Adaptive Technologies",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["keywarp"]

[tool.pytest.ini_options]
addopts = "-ra"
