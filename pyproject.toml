[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ticketscore"
version = "0.1.0"
description = "Weighted quality scores for support tickets, by category, by ticket, overall and period over period"
requires-python = ">=3.10"
dependencies = []
keywords = ["scoring", "ratings", "tickets", "quality", "sqlite"]
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
    "Topic :: Office/Business",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ticketscore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
