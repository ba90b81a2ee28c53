[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vectrace"
version = "0.1.0"
description = "Greymap reading and writing, LZW compression and command-line option parsing for a bitmap-to-vector tracer"
requires-python = ">=3.10"
dependencies = []
keywords = ["tracing", "vectorization", "pnm", "pgm", "bmp", "lzw", "greymap", "getopt"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["vectrace"]

[tool.pytest.ini_options]
addopts = "-ra"
