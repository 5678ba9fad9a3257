"""Tests for the streaming loop, run against the in-memory sink."""
import numpy as np
import pytest

from spheremesh.config import StreamConfig
from spheremesh.mesh.sphere import generate_sphere_mesh
from spheremesh.stream.driver import stream_spheres
from spheremesh.stream.schedule import LodTier, radius_at
from spheremesh.stream.sinks import MemorySink, up_vector

TIERS = (
    LodTier("coarse", 2, every=1, translation=(-5.0, 0.0, 0.0)),
    LodTier("fine", 3, every=4),
)


@pytest.fixture
def config():
    return StreamConfig(n_frames=10, max_radius=4.0, min_radius=0.5, tiers=TIERS)


def test_stream_emits_each_tier_on_its_cadence(config):
    with MemorySink() as sink:
        summary = stream_spheres(sink, config)

    coarse = sink.frames_for("coarse")
    fine = sink.frames_for("fine")
    assert [f.sequence("frame") for f in coarse] == list(range(10))
    assert [f.sequence("frame") for f in fine] == [0, 4, 8]

    assert summary.emissions == {"coarse": 10, "fine": 3}
    assert summary.vertices_emitted == 10 * 24 + 3 * 54
    assert summary.n_frames == 10
    assert summary.elapsed_seconds >= 0.0


def test_stream_grows_radius_along_the_timeline(config):
    with MemorySink() as sink:
        stream_spheres(sink, config)

    for frame in sink.frames_for("fine"):
        index = frame.sequence("frame")
        expected = radius_at(index, 10, 4.0, 0.5)
        assert frame.radius == expected
        reference = generate_sphere_mesh(expected, 3)
        np.testing.assert_array_equal(frame.mesh.vertices, reference.vertices)
        np.testing.assert_array_equal(frame.mesh.normals, reference.normals)

    radii = [f.radius for f in sink.frames_for("coarse")]
    assert radii == sorted(radii)


def test_stream_declares_timeless_scene(config):
    with MemorySink() as sink:
        stream_spheres(sink, config)

    assert sink.view_coordinates == {"spheres": "RIGHT_HAND_Y_UP"}
    assert sink.translations == {"coarse": (-5.0, 0.0, 0.0)}


def test_progress_callback_sees_every_frame(config):
    seen = []
    with MemorySink(keep_meshes=False) as sink:
        stream_spheres(sink, config, progress=lambda frame, total: seen.append((frame, total)))

    assert seen == [(i, 10) for i in range(10)]
    assert all(f.mesh is None for f in sink.frames)
    assert sink.frames[0].n_vertices == 24


def test_zero_frames_emit_nothing():
    config = StreamConfig(n_frames=0, tiers=TIERS)
    with MemorySink() as sink:
        summary = stream_spheres(sink, config)
    assert sink.frames == []
    assert summary.vertices_emitted == 0


def test_closed_sink_is_rejected(config):
    sink = MemorySink()
    with pytest.raises(RuntimeError):
        stream_spheres(sink, config)


def test_invalid_config_rejected():
    with pytest.raises(ValueError):
        StreamConfig(n_frames=-1)
    with pytest.raises(ValueError):
        StreamConfig(tiers=())
    with pytest.raises(ValueError):
        StreamConfig(min_radius=-1.0)
    with pytest.raises(ValueError):
        StreamConfig(max_radius=float("nan"))
    with pytest.raises(ValueError):
        StreamConfig(min_radius=float("inf"))


def test_view_coordinates_are_validated():
    assert up_vector("RIGHT_HAND_Y_UP") == (0.0, 1.0, 0.0)
    assert up_vector("LEFT_HAND_Z_UP") == (0.0, 0.0, 1.0)
    with MemorySink() as sink:
        with pytest.raises(ValueError):
            sink.log_view_coordinates("spheres", "UPSIDE_DOWN")
