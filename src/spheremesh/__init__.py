"""
spheremesh
==========
Parametric sphere meshes at several levels of detail, streamed over a
synthetic time axis to a visualization sink.

Subpackages:
    mesh    - Pure geometry. No I/O, no logging handlers, no viewer.
    stream  - LOD schedule, driving loop and the sinks that receive frames.
"""
from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("spheremesh")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from spheremesh.mesh.sphere import SphereMesh, InvalidMeshParameters, generate_sphere_mesh

__all__ = ["SphereMesh", "InvalidMeshParameters", "generate_sphere_mesh", "__version__"]
