[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "moleculer"
version = "0.1.0"
description = "Building blocks of a microservice broker: service schemas, payloads, call contexts, middleware dispatch and tracing metrics."
requires-python = ">=3.10"
dependencies = []
keywords = ["microservices", "broker", "payload", "context", "middleware", "metrics", "tracing"]
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
    "Topic :: System :: Distributed Computing",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["moleculer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
