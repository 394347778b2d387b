[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "revivelint"
version = "0.1.0"
description = "A framework for linting Go source files: pluggable rules, in-source disable comments and several output formatters"
requires-python = ">=3.11"
dependencies = [
    "tabulate",
    "termcolor",
]
keywords = ["lint", "linter", "go", "static-analysis", "code-quality", "checkstyle"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Quality Assurance",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
revivelint = "revivelint.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["revivelint"]

[tool.pytest.ini_options]
addopts = "-ra"
