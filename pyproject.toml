[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mqttpacket"
version = "1.0.0"
description = "Serialize and deserialize MQTT 3.1 and 3.1.1 control packets, with simple socket and serial transports"
requires-python = ">=3.10"
dependencies = []
keywords = ["mqtt", "iot", "packet", "protocol", "serialization", "embedded"]
classifiers = [
    "Development Status :: 5 - Production/Stable",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications",
    "Topic :: Internet",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mqttpacket"]

[tool.hatch.build.targets.sdist]
include = ["mqttpacket", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
