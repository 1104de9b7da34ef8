[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gmailrules"
version = "0.1.0"
description = "Gmail filter rules as data: simplify, split, diff, import and export filters and labels"
requires-python = ">=3.10"
dependencies = []
keywords = ["gmail", "email", "filters", "labels", "rules", "diff"]
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
    "Topic :: Communications :: Email :: Filters",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["gmailrules"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
