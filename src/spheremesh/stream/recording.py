"""
Recording Sink (HDF5)
Writes streamed meshes to an .h5 recording and reads them back.

Layout:
    /                                  attrs: application, version, created, timeline
    /timeless/<entity>                 attrs: view_coordinates, translation
    /entities/<entity>/<NNNNNNNN>      attrs: <timeline>, radius, subdivisions
        vertices  (M, 3) float32
        normals   (M, 3) float32
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import logging
import os
from typing import Optional, TYPE_CHECKING

import h5py
import numpy as np

from spheremesh import __version__
from spheremesh.stream.sinks import MeshSink, MeshFrame

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

ENTITY_ATTR = "entity"


class Hdf5RecordingSink(MeshSink):
    """Streams every logged mesh into an HDF5 file."""
    NAME = "HDF5 Recording"

    def __init__(
        self,
        filepath: str,
        application: str = "spheremesh",
        timeline: str = "frame",
        compression: Optional[str] = None,
    ) -> None:
        """
        Args:
            filepath: Target .h5 file. Overwritten on open.
            application: Stored as a root attribute to identify the recording.
            timeline: Timeline whose value names the per-frame groups.
            compression: Optional h5py dataset compression (e.g. "gzip").
        """
        super().__init__()
        self.filepath = filepath
        self.application = application
        self.timeline = timeline
        self.compression = compression
        self._file: Optional[h5py.File] = None
        self._counter: int = 0

    def _on_open(self) -> None:
        logger.info(f"Recording to: {self.filepath}")
        directory = os.path.dirname(os.path.abspath(self.filepath))
        os.makedirs(directory, exist_ok=True)
        try:
            self._file = h5py.File(self.filepath, "w")
        except OSError as e:
            logger.error(f"Could not create recording '{self.filepath}': {e}")
            raise
        self._file.attrs["application"] = self.application
        self._file.attrs["version"] = __version__
        self._file.attrs["created"] = datetime.now().isoformat(timespec="seconds")
        self._file.attrs["timeline"] = self.timeline
        self._file.create_group("timeless")
        self._file.create_group("entities")
        self._counter = 0

    def _on_close(self) -> None:
        if self._file is not None:
            self._file.flush()
            self._file.close()
            self._file = None
            logger.info(f"Recording saved: {self.filepath} ({self._counter} meshes)")

    def _on_timeless(self, entity: str, key: str, value: object) -> None:
        grp = self._file["timeless"].require_group(entity)
        grp.attrs[key] = value

    def _on_mesh(self, frame: MeshFrame) -> None:
        ent = self._file["entities"].require_group(frame.entity)
        ent.attrs[ENTITY_ATTR] = frame.entity

        index = frame.sequence(self.timeline)
        if index is None:
            index = self._counter
        key = f"{index:08d}"
        if key in ent:
            # same entity logged twice at one time point: last one wins
            del ent[key]

        grp = ent.create_group(key)
        for timeline, value in frame.time.items():
            grp.attrs[timeline] = value
        grp.attrs["radius"] = frame.radius
        grp.attrs["subdivisions"] = frame.subdivisions

        try:
            grp.create_dataset("vertices", data=frame.mesh.vertices, compression=self.compression)
            grp.create_dataset("normals", data=frame.mesh.normals, compression=self.compression)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to write {frame.entity}@{key}: {e}")
            raise

        self._counter += 1
        logger.debug(f"Recorded {frame.entity}@{key}: {frame.n_vertices} vertices")


@dataclass
class RecordedMesh:
    time: dict[str, int]
    radius: float
    subdivisions: int
    vertices: npt.NDArray[np.float32]
    normals: npt.NDArray[np.float32]


@dataclass
class Recording:
    """In-memory view of an .h5 recording."""
    attrs: dict[str, object] = field(default_factory=dict)
    timeless: dict[str, dict[str, object]] = field(default_factory=dict)
    entities: dict[str, list[RecordedMesh]] = field(default_factory=dict)

    @property
    def total_vertices(self) -> int:
        return sum(m.vertices.shape[0] for meshes in self.entities.values() for m in meshes)


def _plain(value: object) -> object:
    """Convert h5py attribute values (numpy scalars / arrays) to Python types."""
    if isinstance(value, np.ndarray):
        return tuple(value.tolist())
    if isinstance(value, np.generic):
        return value.item()
    return value


def read_recording(filepath: str) -> Recording:
    """
    Load a recording written by Hdf5RecordingSink.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not a spheremesh recording.
    """
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"Recording not found: {filepath}")

    logger.info(f"Loading recording from: {filepath}")
    recording = Recording()
    with h5py.File(filepath, "r") as f:
        if "entities" not in f or "timeless" not in f:
            raise ValueError(f"'{filepath}' is not a spheremesh recording.")

        recording.attrs = {k: _plain(v) for k, v in f.attrs.items()}
        timeline = str(recording.attrs.get("timeline", "frame"))

        def collect_timeless(name: str, obj: object) -> None:
            if isinstance(obj, h5py.Group) and len(obj.attrs) > 0:
                recording.timeless[name] = {k: _plain(v) for k, v in obj.attrs.items()}

        f["timeless"].visititems(collect_timeless)

        def collect_entity(name: str, obj: object) -> None:
            if not isinstance(obj, h5py.Group) or ENTITY_ATTR not in obj.attrs:
                return
            meshes: list[tuple[int, RecordedMesh]] = []
            for key in obj.keys():
                grp = obj[key]
                if not isinstance(grp, h5py.Group) or "vertices" not in grp:
                    continue
                attrs = {k: _plain(v) for k, v in grp.attrs.items()}
                radius = float(attrs.pop("radius"))
                subdivisions = int(attrs.pop("subdivisions"))
                mesh = RecordedMesh(
                    time={k: int(v) for k, v in attrs.items()},
                    radius=radius,
                    subdivisions=subdivisions,
                    vertices=grp["vertices"][()],
                    normals=grp["normals"][()],
                )
                # group names are zero-padded, not fixed width: order by the stored value
                meshes.append((mesh.time.get(timeline, int(key)), mesh))
            meshes.sort(key=lambda item: item[0])
            recording.entities[str(obj.attrs[ENTITY_ATTR])] = [mesh for _, mesh in meshes]

        f["entities"].visititems(collect_entity)

    return recording
