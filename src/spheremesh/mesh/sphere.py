"""
Sphere Mesh Generator
=====================
Turns a (radius, subdivisions) pair into a flat-shaded, unindexed triangle list.

The sphere is parameterized by the polar angle phi in [0, pi] and the azimuth
theta in [0, 2*pi], both split into N equal steps. Every one of the N x N
quads is cut into two triangles along its (next_phi, theta)-(phi, next_theta)
diagonal:

    v1 = P(phi, theta)        v3 = P(phi, next_theta)
    v2 = P(next_phi, theta)   v4 = P(next_phi, next_theta)

    triangle A = (v1, v2, v3)
    triangle B = (v2, v4, v3)

Cells are emitted phi-major (theta inner), A before B, so a mesh of N
subdivisions always holds 6 * N**2 vertices and as many normals. Each
triangle owns its three vertex copies and carries one face normal repeated
three times (flat shading; no averaging across neighbours).

All math is single precision. The function is pure: equal inputs give
bit-identical buffers.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Integral, Real
from typing import TYPE_CHECKING, Iterator

import numpy as np

from spheremesh.mesh.geometry_utils import FLOAT, angle_steps, face_normals, spherical_to_cartesian

if TYPE_CHECKING:
    import numpy.typing as npt

VERTICES_PER_CELL = 6


class InvalidMeshParameters(ValueError):
    """Raised for a negative/non-finite radius or a subdivision count below 1."""


@dataclass(frozen=True, eq=False)
class SphereMesh:
    """
    Result of generate_sphere_mesh. Both buffers are read-only (M, 3) float32 arrays.

    Unpacks like the plain pair: ``vertices, normals = mesh``.
    """
    radius: float
    subdivisions: int
    vertices: npt.NDArray[np.float32]
    normals: npt.NDArray[np.float32]

    def __iter__(self) -> Iterator[npt.NDArray[np.float32]]:
        return iter((self.vertices, self.normals))

    def __len__(self) -> int:
        return self.n_vertices

    @property
    def n_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def n_triangles(self) -> int:
        return self.n_vertices // 3

    def triangles(self) -> npt.NDArray[np.float32]:
        """(n_triangles, 3, 3) view: triangle, corner, axis."""
        return self.vertices.reshape(-1, 3, 3)

    def face_normals(self) -> npt.NDArray[np.float32]:
        """(n_triangles, 3) view with one normal per triangle."""
        return self.normals.reshape(-1, 3, 3)[:, 0, :]


def expected_vertex_count(subdivisions: int) -> int:
    return VERTICES_PER_CELL * subdivisions * subdivisions


def _validate(radius: float, subdivisions: int) -> None:
    if isinstance(subdivisions, bool) or not isinstance(subdivisions, Integral):
        raise InvalidMeshParameters(f"subdivisions must be an integer, got {subdivisions!r}")
    if subdivisions < 1:
        raise InvalidMeshParameters(f"subdivisions must be >= 1, got {subdivisions}")
    if not isinstance(radius, Real) or not math.isfinite(radius):
        raise InvalidMeshParameters(f"radius must be a finite number, got {radius!r}")
    if radius < 0.0:
        raise InvalidMeshParameters(f"radius must be >= 0, got {radius}")


def generate_sphere_mesh(radius: float, subdivisions: int) -> SphereMesh:
    """
    Generate the vertex and flat-normal buffers of a UV sphere.

    Args:
        radius: Sphere radius (>= 0). A zero radius collapses every vertex onto the
            origin; the normals are then all zero.
        subdivisions: Number of steps for both phi and theta (>= 1).

    Returns:
        A SphereMesh with 6 * subdivisions**2 vertices and normals.

    Raises:
        InvalidMeshParameters: If subdivisions < 1 or radius is negative / not finite.

    Notes:
        Triangle A of every north-pole cell has v1 == v3 exactly and therefore a
        zero normal. At the south pole sin(pi) is not exactly zero in float32, so
        the matching triangle B is only nearly degenerate.

        Normals are taken from the unit-sphere corners, since a positive radius
        only scales the faces. This keeps them unit length for radii far from 1,
        where the cross product of the scaled edges would underflow or overflow
        in float32.

        Each normal is normalize((p2 - p1) x (p3 - p1)) of the triangle in its
        emitted order, so it faces away from the origin and agrees with the
        counter-clockwise winding. Computing it from (v2, v1, v3) and (v4, v2, v3)
        instead would give the exact negation, i.e. inward-facing normals.
    """
    _validate(radius, subdivisions)
    n = int(subdivisions)

    phi = angle_steps(n, math.pi)
    theta = angle_steps(n, 2.0 * math.pi)
    corners = spherical_to_cartesian(radius, phi, theta)  # (n+1, n+1, 3)

    v1 = corners[:-1, :-1]
    v2 = corners[1:, :-1]
    v3 = corners[:-1, 1:]
    v4 = corners[1:, 1:]

    vertices = np.empty((n, n, VERTICES_PER_CELL, 3), dtype=FLOAT)
    vertices[:, :, 0] = v1
    vertices[:, :, 1] = v2
    vertices[:, :, 2] = v3
    vertices[:, :, 3] = v2
    vertices[:, :, 4] = v4
    vertices[:, :, 5] = v3

    normals = np.zeros_like(vertices)
    if radius > 0.0:
        unit = spherical_to_cartesian(1.0, phi, theta)
        u1 = unit[:-1, :-1]
        u2 = unit[1:, :-1]
        u3 = unit[:-1, 1:]
        u4 = unit[1:, 1:]
        normals[:, :, 0:3] = face_normals(u1, u2, u3)[:, :, None, :]
        normals[:, :, 3:6] = face_normals(u2, u4, u3)[:, :, None, :]

    vertices = vertices.reshape(-1, 3)
    normals = normals.reshape(-1, 3)
    vertices.flags.writeable = False
    normals.flags.writeable = False

    return SphereMesh(radius=float(radius), subdivisions=n, vertices=vertices, normals=normals)
