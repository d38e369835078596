[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gorder"
version = "0.1.0"
description = "Order, payment and kitchen services for an event-driven ordering system"
requires-python = ">=3.10"
keywords = [
    "orders",
    "point-of-sale",
    "rabbitmq",
    "microservices",
    "cqrs",
    "payments",
    "webhooks",
]
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
    "Framework :: Flask",
    "Topic :: Office/Business :: Financial :: Point-Of-Sale",
    "Typing :: Typed",
]
dependencies = [
    "pika",
    "pyyaml",
    "flask",
    "pymongo",
    "redis",
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["gorder"]

[tool.hatch.build.targets.sdist]
include = [
    "gorder",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
