[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gaugevote"
version = "1.0.0"
description = "Vote-escrowed gauge voting: users spread voting power over pools, and periodic tuning turns the votes into allocation points for the top pools."
requires-python = ">=3.10"
dependencies = []
keywords = ["gauge", "voting", "vote-escrow", "allocation", "liquidity pools"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["gaugevote"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
