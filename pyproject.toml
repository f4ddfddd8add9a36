[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "medjpeg"
version = "0.1.0"
description = "Lossless JPEG (SOF 0xC3) decoding and JPEG-LS stream building blocks for medical images"
requires-python = ">=3.10"
dependencies = []
keywords = ["jpeg", "lossless", "jpeg-ls", "dicom", "medical imaging", "huffman"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
    "Topic :: Scientific/Engineering :: Medical Science Apps.",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["medjpeg"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
