[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "multitokens"
version = "0.1.0"
description = "In-memory multi-currency token ledger with locks, reserves, existential deposits and dust handling"
requires-python = ">=3.10"
keywords = ["ledger", "tokens", "multi-currency", "balances", "accounting"]
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
    "Topic :: Office/Business :: Financial :: Accounting",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["multitokens"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
