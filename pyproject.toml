[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "tarsh"
version = "0.1.0"
description = "Read and modify ustar archives in place: list, check access, copy, move, remove, extract and add files"
requires-python = ">=3.10"
dependencies = []
keywords = ["tar", "ustar", "archive", "posix", "in-place"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Archiving",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["tarsh*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
