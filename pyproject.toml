[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "esplink"
version = "0.1.0"
description = "MQTT 3.1.1 packet building, inbound framing and an acknowledgement-aware send queue, plus HTTP request helpers and a lenient base64 decoder"
requires-python = ">=3.10"
dependencies = []
keywords = ["mqtt", "http", "url-decode", "mime", "base64", "embedded"]
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
    "Topic :: Internet",
    "Topic :: Communications",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["esplink"]

[tool.hatch.build.targets.sdist]
include = ["esplink", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
