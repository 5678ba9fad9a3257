from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt

FLOAT = np.float32


def angle_steps(n_steps: int, span: float) -> npt.NDArray[np.float32]:
    """
    Sample ``k * (span / n_steps)`` for k = 0 .. n_steps (inclusive) in single precision.

    The step is computed once and multiplied, rather than using ``np.linspace``,
    so that the last sample is ``n_steps * step`` exactly as a per-cell loop
    would compute ``(i + 1) * step``.

    Args:
        n_steps: Number of equal steps (>= 1).
        span: Total angle covered, in radians.

    Returns:
        An array of shape (n_steps + 1,) with dtype float32.
    """
    step = FLOAT(span) / FLOAT(n_steps)
    return np.arange(n_steps + 1, dtype=FLOAT) * step


def spherical_to_cartesian(
    radius: float,
    phi: npt.NDArray[np.float32],
    theta: npt.NDArray[np.float32],
) -> npt.NDArray[np.float32]:
    """
    Map polar angle phi (from +Z) and azimuth theta (from +X) onto a sphere.

        x = r * sin(phi) * cos(theta)
        y = r * sin(phi) * sin(theta)
        z = r * cos(phi)

    Args:
        radius: Sphere radius.
        phi: (P,) polar angles.
        theta: (T,) azimuthal angles.

    Returns:
        A (P, T, 3) float32 grid, indexed [phi, theta].
    """
    r = FLOAT(radius)
    phi = np.asarray(phi, dtype=FLOAT)
    theta = np.asarray(theta, dtype=FLOAT)

    r_sin_phi = (r * np.sin(phi))[:, None]
    grid = np.empty((phi.shape[0], theta.shape[0], 3), dtype=FLOAT)
    grid[..., 0] = r_sin_phi * np.cos(theta)[None, :]
    grid[..., 1] = r_sin_phi * np.sin(theta)[None, :]
    grid[..., 2] = (r * np.cos(phi))[:, None]
    return grid


def face_normals(
    p1: npt.NDArray[np.float32],
    p2: npt.NDArray[np.float32],
    p3: npt.NDArray[np.float32],
) -> npt.NDArray[np.float32]:
    """
    Unit normal of each triangle (p1, p2, p3): normalize((p2 - p1) x (p3 - p1)).

    Degenerate triangles (coincident corners, or a zero radius) get a zero
    normal instead of NaN.

    Args:
        p1, p2, p3: (..., 3) arrays of triangle corners.

    Returns:
        (..., 3) float32 array of normals.
    """
    n = np.cross(p2 - p1, p3 - p1).astype(FLOAT, copy=False)
    # scale by the largest component first so squaring in the norm cannot underflow
    scale = np.max(np.abs(n), axis=-1, keepdims=True)
    n = np.divide(n, scale, out=np.zeros_like(n), where=scale > 0.0)
    length = np.linalg.norm(n, axis=-1, keepdims=True)
    return np.divide(n, length, out=np.zeros_like(n), where=length > 0.0)
