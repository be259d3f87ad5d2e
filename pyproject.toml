[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "photoflow"
version = "0.1.0"
description = "Photo library toolkit: asset models, embedded metadata readers, XMP/JSON sidecars, date filters, batching helpers and docker access"
requires-python = ">=3.10"
keywords = ["photos", "exif", "xmp", "metadata", "sidecar", "takeout", "docker"]
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
    "Topic :: Multimedia :: Graphics",
]
dependencies = [
    "paramiko",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["photoflow"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
