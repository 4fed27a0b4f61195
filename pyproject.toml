[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "larkalert"
version = "0.1.0"
description = "Prometheus Alertmanager webhook receiver that forwards alerts to Lark/Feishu bots as interactive cards"
requires-python = ">=3.10"
dependencies = []
keywords = ["prometheus", "alertmanager", "lark", "feishu", "webhook", "alerting"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: No Input/Output (Daemon)",
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

[project.scripts]
larkalert = "larkalert.server:main"

[tool.hatch.build.targets.wheel]
packages = ["larkalert"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
