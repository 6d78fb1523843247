[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gadsidm"
version = "0.1.0"
description = "Tree gravity, Ewald corrections, external potentials and self-interacting dark matter scattering for N-body particles"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["n-body", "gravity", "octree", "barnes-hut", "ewald", "treepm", "sidm", "dark matter"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Astronomy",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["gadsidm"]

[tool.pytest.ini_options]
addopts = "-ra"
