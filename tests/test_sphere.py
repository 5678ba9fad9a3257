"""
Tests for the sphere mesh generator.

Checks the buffer sizes, the radius invariant, flat unit normals facing
outward, determinism and the rejected inputs.
"""
import math

import numpy as np
import pytest

from spheremesh import InvalidMeshParameters, SphereMesh, generate_sphere_mesh
from spheremesh.mesh.sphere import expected_vertex_count


def _norms(a):
    return np.linalg.norm(a.astype(np.float64), axis=1)


@pytest.mark.parametrize("n", [1, 2, 3, 10, 37])
def test_buffer_lengths(n):
    mesh = generate_sphere_mesh(1.0, n)
    assert mesh.vertices.shape == (6 * n * n, 3)
    assert mesh.normals.shape == (6 * n * n, 3)
    assert mesh.vertices.dtype == np.float32
    assert mesh.normals.dtype == np.float32
    assert len(mesh) == expected_vertex_count(n)
    assert mesh.n_triangles == 2 * n * n


def test_ten_subdivisions_give_600_vertices():
    vertices, normals = generate_sphere_mesh(1.0, 10)
    assert len(vertices) == 600
    assert len(normals) == 600
    np.testing.assert_allclose(_norms(vertices), 1.0, atol=1e-4)


@pytest.mark.parametrize("radius", [0.1, 1.0, 50.1])
@pytest.mark.parametrize("n", [1, 3, 10, 64])
def test_vertices_lie_on_sphere(radius, n):
    mesh = generate_sphere_mesh(radius, n)
    np.testing.assert_allclose(_norms(mesh.vertices), radius, rtol=1e-4)


@pytest.mark.parametrize("n", [8, 16])
def test_doubling_resolution_keeps_radius(n):
    for subdivisions in (n, 2 * n):
        mesh = generate_sphere_mesh(7.5, subdivisions)
        np.testing.assert_allclose(_norms(mesh.vertices), 7.5, rtol=1e-4)


@pytest.mark.parametrize("n", [4, 10])
def test_normals_are_unit_except_north_pole_caps(n):
    mesh = generate_sphere_mesh(1.0, n)
    lengths = _norms(mesh.normals)
    zero = lengths == 0.0

    # triangle A of each north-pole cell has v1 == v3
    assert np.count_nonzero(zero) == 3 * n
    np.testing.assert_allclose(lengths[~zero], 1.0, atol=1e-4)


@pytest.mark.parametrize("radius", [1e-12, 1e-9, 1e-6, 1e10, 1e11])
@pytest.mark.parametrize("n", [10, 100])
def test_normals_stay_unit_for_extreme_radii(radius, n):
    with np.errstate(over="raise", divide="raise", invalid="raise"):
        mesh = generate_sphere_mesh(radius, n)
    lengths = _norms(mesh.normals)
    zero = lengths == 0.0

    assert np.count_nonzero(zero) == 3 * n
    np.testing.assert_allclose(lengths[~zero], 1.0, atol=1e-4)
    np.testing.assert_array_equal(mesh.normals, generate_sphere_mesh(1.0, n).normals)


def test_normals_are_flat_per_triangle():
    mesh = generate_sphere_mesh(3.0, 12)
    per_tri = mesh.normals.reshape(-1, 3, 3)
    np.testing.assert_array_equal(per_tri[:, 0], per_tri[:, 1])
    np.testing.assert_array_equal(per_tri[:, 0], per_tri[:, 2])
    np.testing.assert_array_equal(mesh.face_normals(), per_tri[:, 0])


def test_normals_follow_winding_and_face_outward():
    n = 16
    mesh = generate_sphere_mesh(2.0, n)
    tris = mesh.triangles().astype(np.float64)
    normals = mesh.face_normals().astype(np.float64)

    winding = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
    # same direction as the stored normal wherever the triangle has a real area
    solid = np.linalg.norm(winding, axis=1) > 1e-6
    assert np.count_nonzero(solid) > n * n
    assert np.all(np.einsum("ij,ij->i", winding[solid], normals[solid]) > 0.0)

    # rows away from the poles: normal points away from the origin
    centroids = tris.mean(axis=1).reshape(n, n, 2, 3)[1:-1]
    interior = normals.reshape(n, n, 2, 3)[1:-1]
    assert np.all(np.einsum("...k,...k->...", centroids, interior) > 0.0)


def test_cell_order_phi_outer_theta_inner():
    n = 4
    r = 1.0
    mesh = generate_sphere_mesh(r, n)

    def corner(i, j):
        phi = i * math.pi / n
        theta = j * 2.0 * math.pi / n
        return [r * math.sin(phi) * math.cos(theta), r * math.sin(phi) * math.sin(theta), r * math.cos(phi)]

    i, j = 1, 2
    cell = mesh.vertices.reshape(n, n, 6, 3)[i, j]
    expected = [corner(i, j), corner(i + 1, j), corner(i, j + 1),
                corner(i + 1, j), corner(i + 1, j + 1), corner(i, j + 1)]
    np.testing.assert_allclose(cell, expected, atol=1e-6)


def test_single_subdivision_wraps_whole_sphere():
    mesh = generate_sphere_mesh(0.1, 1)
    v = mesh.vertices
    assert v.shape == (6, 3)
    assert mesh.n_triangles == 2
    # both triangles share the diagonal v2-v3
    np.testing.assert_array_equal(v[1], v[3])
    np.testing.assert_array_equal(v[2], v[5])
    np.testing.assert_allclose(v[0], [0.0, 0.0, 0.1], atol=1e-7)
    np.testing.assert_allclose(v[1], [0.0, 0.0, -0.1], atol=1e-7)
    np.testing.assert_allclose(_norms(v), 0.1, rtol=1e-4)


def test_output_is_deterministic():
    a = generate_sphere_mesh(12.345, 33)
    b = generate_sphere_mesh(12.345, 33)
    assert a.vertices.tobytes() == b.vertices.tobytes()
    assert a.normals.tobytes() == b.normals.tobytes()


def test_calls_return_independent_buffers():
    a = generate_sphere_mesh(1.0, 5)
    b = generate_sphere_mesh(1.0, 5)
    assert not np.shares_memory(a.vertices, b.vertices)
    assert not np.shares_memory(a.normals, b.normals)


def test_buffers_are_read_only():
    mesh = generate_sphere_mesh(1.0, 3)
    with pytest.raises(ValueError):
        mesh.vertices[0, 0] = 5.0
    with pytest.raises(ValueError):
        mesh.normals[0, 0] = 5.0


def test_unpacks_like_a_pair():
    mesh = generate_sphere_mesh(1.0, 2)
    vertices, normals = mesh
    assert isinstance(mesh, SphereMesh)
    assert vertices is mesh.vertices
    assert normals is mesh.normals


def test_zero_radius_collapses_without_nan():
    mesh = generate_sphere_mesh(0.0, 6)
    assert mesh.vertices.shape == (216, 3)
    np.testing.assert_array_equal(mesh.vertices, 0.0)
    np.testing.assert_array_equal(mesh.normals, 0.0)


def test_accepts_numpy_scalars():
    mesh = generate_sphere_mesh(np.float32(2.5), np.int64(3))
    assert mesh.subdivisions == 3
    assert mesh.vertices.shape == (54, 3)


@pytest.mark.parametrize("subdivisions", [0, -1, 2.5, True, "10", None])
def test_rejects_bad_subdivisions(subdivisions):
    with pytest.raises(InvalidMeshParameters):
        generate_sphere_mesh(1.0, subdivisions)


@pytest.mark.parametrize("radius", [-0.5, math.nan, math.inf, "1.0"])
def test_rejects_bad_radius(radius):
    with pytest.raises(ValueError):
        generate_sphere_mesh(radius, 4)


@pytest.mark.slow
def test_largest_tier_has_six_million_vertices():
    mesh = generate_sphere_mesh(50.1, 1000)
    assert mesh.vertices.shape == (6_000_000, 3)
    assert mesh.normals.shape == (6_000_000, 3)
    lengths = np.linalg.norm(mesh.vertices, axis=1)
    np.testing.assert_allclose(lengths, 50.1, rtol=1e-4)
