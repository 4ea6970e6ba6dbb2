[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "agentcli"
version = "0.1.0"
description = "Read the pipeline topology and health of Elastic Agent, EDOT and OpenTelemetry collectors."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "opentelemetry",
    "otel",
    "collector",
    "elastic-agent",
    "edot",
    "zpages",
    "health-check",
    "monitoring",
    "observability",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["agentcli"]

[tool.hatch.build.targets.sdist]
include = ["agentcli", "tests"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
