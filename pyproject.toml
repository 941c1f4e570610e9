[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "instana_operator"
version = "0.1.0"
description = "Model of the Instana agent custom resource with defaulting, event filtering and reconcile helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["kubernetes", "operator", "instana", "agent", "custom-resource", "reconcile"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Clustering",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["instana_operator"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
