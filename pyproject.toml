[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "busdispatch"
version = "0.1.0"
description = "Method dispatch, introspection and property handling for D-Bus style object trees"
requires-python = ">=3.10"
keywords = ["dbus", "ipc", "introspection", "dispatch", "properties"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["busdispatch"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
