[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dbsqlcore"
version = "0.1.0"
description = "Core building blocks of a SQL warehouse client: parameter binding, result paging, column metadata, date/time parsing and operation polling."
requires-python = ">=3.10"
dependencies = []
keywords = ["sql", "database", "driver", "paging", "parameters", "polling"]
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
    "Topic :: Database :: Front-Ends",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["dbsqlcore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
