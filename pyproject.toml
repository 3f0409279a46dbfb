[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "keyedarchive"
version = "0.1.0"
description = "Typed binary key-value archives, memory and socket streams, entities and persistent settings"
requires-python = ">=3.10"
dependencies = []
keywords = ["archive", "serialization", "settings", "entity", "stream", "game"]
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
    "Topic :: Software Development :: Libraries :: Application Frameworks",
    "Topic :: Games/Entertainment",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["keyedarchive"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
