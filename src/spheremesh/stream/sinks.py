"""
Mesh Sinks
==========
A sink is where generated frames go: an HDF5 recording, a live viewer,
or plain memory.

Why is this file needed?
------------------------
1. Decoupling: The driving loop only knows this interface. It never
   touches h5py or PyVista directly.
2. Timeline: The sink owns the time cursor (``set_time_sequence``) and the
   timeless scene setup (coordinate convention, per-entity placement), so
   every mesh is stamped consistently.

Classes:
    MeshFrame: One mesh at one point of the timeline.
    MeshSink: Abstract base with lifecycle and bookkeeping.
    MemorySink: Keeps everything in lists (tests, dry runs).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
import re
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from spheremesh.mesh.sphere import SphereMesh

logger = logging.getLogger(__name__)

_CONVENTION = re.compile(r"^(RIGHT|LEFT)_HAND_([XYZ])_UP$")
_AXES = {"X": (1.0, 0.0, 0.0), "Y": (0.0, 1.0, 0.0), "Z": (0.0, 0.0, 1.0)}


def up_vector(convention: str) -> tuple[float, float, float]:
    """
    Up direction of a coordinate convention such as 'RIGHT_HAND_Y_UP'.

    Raises:
        ValueError: If the convention is not of the form {RIGHT|LEFT}_HAND_{X|Y|Z}_UP.
    """
    match = _CONVENTION.match(convention)
    if match is None:
        raise ValueError(f"Unknown view coordinates: {convention!r}")
    return _AXES[match.group(2)]


@dataclass
class MeshFrame:
    """A mesh as received by a sink, stamped with the time cursor at logging time."""
    entity: str
    time: dict[str, int]
    mesh: Optional[SphereMesh]
    radius: float
    subdivisions: int
    n_vertices: int

    def sequence(self, timeline: str) -> Optional[int]:
        return self.time.get(timeline)


class MeshSink(ABC):
    """
    Abstract base class for mesh sinks.

    Subclasses implement ``_on_mesh`` and may hook ``_on_open``, ``_on_close``
    and ``_on_timeless``. Calls on a sink that is not open raise RuntimeError.
    """
    NAME: str = "Mesh Sink"

    def __init__(self) -> None:
        self._is_open: bool = False
        self.time: dict[str, int] = {}
        self.view_coordinates: dict[str, str] = {}
        self.translations: dict[str, tuple[float, float, float]] = {}

    # --- Lifecycle ---

    @property
    def is_open(self) -> bool:
        return self._is_open

    def open(self) -> None:
        if self._is_open:
            return
        logger.info(f"Opening {self.NAME}.")
        self._on_open()
        self._is_open = True

    def close(self) -> None:
        if not self._is_open:
            return
        try:
            self._on_close()
        finally:
            self._is_open = False
            logger.info(f"Closed {self.NAME}.")

    def __enter__(self) -> MeshSink:
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_open(self) -> None:
        if not self._is_open:
            raise RuntimeError(f"{self.NAME} is not open.")

    # --- Timeless scene setup ---

    def log_view_coordinates(self, entity: str, convention: str) -> None:
        self._require_open()
        up_vector(convention)
        self.view_coordinates[entity] = convention
        self._on_timeless(entity, "view_coordinates", convention)

    def log_transform(self, entity: str, translation: tuple[float, float, float]) -> None:
        self._require_open()
        if len(translation) != 3:
            raise ValueError(f"Translation needs 3 components, got {translation}")
        translation = (float(translation[0]), float(translation[1]), float(translation[2]))
        self.translations[entity] = translation
        self._on_timeless(entity, "translation", translation)

    # --- Timeline ---

    def set_time_sequence(self, timeline: str, value: int) -> None:
        self._require_open()
        self.time[timeline] = int(value)

    def log_mesh(self, entity: str, mesh: SphereMesh) -> None:
        self._require_open()
        frame = MeshFrame(
            entity=entity,
            time=dict(self.time),
            mesh=mesh,
            radius=mesh.radius,
            subdivisions=mesh.subdivisions,
            n_vertices=mesh.n_vertices,
        )
        self._on_mesh(frame)

    # --- Hooks ---

    def _on_open(self) -> None:
        pass

    def _on_close(self) -> None:
        pass

    def _on_timeless(self, entity: str, key: str, value: object) -> None:
        pass

    @abstractmethod
    def _on_mesh(self, frame: MeshFrame) -> None:
        """Consume one stamped mesh."""
        pass


class MemorySink(MeshSink):
    """
    Keeps every logged frame in ``self.frames``.

    With ``keep_meshes=False`` the buffers are dropped and only the stamps and
    sizes are kept, which is what a dry run of the full 6M-vertex tier needs.
    """
    NAME = "Memory Sink"

    def __init__(self, keep_meshes: bool = True) -> None:
        super().__init__()
        self.keep_meshes = keep_meshes
        self.frames: list[MeshFrame] = []

    def _on_mesh(self, frame: MeshFrame) -> None:
        if not self.keep_meshes:
            frame.mesh = None
        self.frames.append(frame)

    def frames_for(self, entity: str) -> list[MeshFrame]:
        return [f for f in self.frames if f.entity == entity]
