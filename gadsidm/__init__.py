"""Softened tree gravity, Ewald corrections, external potentials and SIDM scattering for N-body particles."""

__version__ = "0.1.0"

__all__ = [
    "collision",
    "ewald",
    "external",
    "gravity",
    "kernel",
    "octree",
    "scatterkernels",
    "scattering",
    "shortrange",
    "softening",
    "treeupdate",
    "treewalk",
]