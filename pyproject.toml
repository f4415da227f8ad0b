[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "shardavl"
version = "0.1.0"
description = "Sharded AVL trees with load-aware routing, redirect tracking and dynamic shard scaling"
requires-python = ">=3.10"
dependencies = []
keywords = ["avl", "tree", "sharding", "consistent-hashing", "robin-hood", "data-structures"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["shardavl"]

[tool.pytest.ini_options]
addopts = "-ra"
