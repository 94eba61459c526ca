[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "escapepod"
version = "0.1.0"
description = "Local server toolkit for Vector robots: license keys, license storage, BLE setup, journal parsing and a small web UI"
requires-python = ">=3.10"
keywords = ["vector", "robot", "license", "ble", "wsgi", "home-automation"]
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
    "Topic :: Home Automation",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
    "Topic :: Security :: Cryptography",
]
dependencies = [
    "cryptography",
    "werkzeug",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
escapepod-license = "escapepod.licensecli:main"

[tool.hatch.build.targets.wheel]
packages = ["escapepod"]

[tool.hatch.build.targets.sdist]
include = ["escapepod", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
