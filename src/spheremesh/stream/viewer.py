"""
Viewer Sink (PyVista)
Shows the streamed spheres in a live plotter, or exports them as .vtp
files with a ParaView .pvd collection per entity.
"""
from __future__ import annotations

import logging
import os
from typing import Optional, TYPE_CHECKING
import xml.etree.ElementTree as ET

import numpy as np
import pyvista as pv

from spheremesh.stream.sinks import MeshSink, MeshFrame, up_vector

if TYPE_CHECKING:
    from spheremesh.mesh.sphere import SphereMesh

logger = logging.getLogger(__name__)


def mesh_to_polydata(
    mesh: SphereMesh,
    translation: tuple[float, float, float] = (0.0, 0.0, 0.0),
) -> pv.PolyData:
    """
    Converts an unindexed triangle list into PolyData.

    Every triangle references its own three points ([3, i, i+1, i+2]); the flat
    normals become the active point normals.

    Args:
        mesh: The generated sphere.
        translation: Offset applied to the points (the source buffers are not modified).

    Returns:
        PolyData with n_vertices points and n_triangles cells.
    """
    points = mesh.vertices + np.asarray(translation, dtype=np.float32)

    n_tri = mesh.n_triangles
    faces = np.empty((n_tri, 4), dtype=np.int64)
    faces[:, 0] = 3
    faces[:, 1:] = np.arange(3 * n_tri, dtype=np.int64).reshape(n_tri, 3)

    poly = pv.PolyData(points, faces.ravel())
    poly.point_data["Normals"] = np.array(mesh.normals)
    poly.point_data.active_normals_name = "Normals"
    return poly


def _file_stem(entity: str) -> str:
    return entity.strip("/").replace("/", "_") or "root"


class PyVistaSink(MeshSink):
    """
    Sends meshes to PyVista.

    If `output_dir` is given, each mesh is saved as <entity>_<NNNNNNNN>.vtp and a
    <entity>.pvd collection is written on close. Otherwise a live Plotter window
    is opened and each entity's actor is replaced as new frames arrive.
    """
    NAME = "PyVista Viewer"

    def __init__(
        self,
        output_dir: Optional[str] = None,
        timeline: str = "frame",
        off_screen: bool = False,
        show_edges: bool = False,
        color: str = "#A0C4FF",
    ) -> None:
        super().__init__()
        self.output_dir = output_dir
        self.timeline = timeline
        self.off_screen = off_screen
        self.show_edges = show_edges
        self.color = color
        self.plotter: Optional[pv.Plotter] = None
        self._collections: dict[str, list[tuple[int, str]]] = {}
        self._counter: int = 0

    def _on_open(self) -> None:
        self._collections = {}
        self._counter = 0
        if self.output_dir is not None:
            os.makedirs(self.output_dir, exist_ok=True)
            logger.info(f"Exporting VTK PolyData to: {self.output_dir}")
            return

        self.plotter = pv.Plotter(off_screen=self.off_screen, title="spheremesh")
        self.plotter.add_axes()
        self.plotter.show(interactive_update=True, auto_close=False)

    def _on_close(self) -> None:
        if self.output_dir is not None:
            for entity, entries in self._collections.items():
                self._write_collection(entity, entries)
        if self.plotter is not None:
            self.plotter.close()
            self.plotter = None

    def _on_timeless(self, entity: str, key: str, value: object) -> None:
        if key == "view_coordinates" and self.plotter is not None:
            self.plotter.camera.up = up_vector(str(value))

    def _translation_for(self, entity: str) -> tuple[float, float, float]:
        # Transforms apply to the logged entity and to everything below it
        best = ""
        for path in self.translations:
            prefix = path.rstrip("/") + "/"
            if (entity == path or entity.startswith(prefix)) and len(path) > len(best):
                best = path
        return self.translations.get(best, (0.0, 0.0, 0.0))

    def _on_mesh(self, frame: MeshFrame) -> None:
        poly = mesh_to_polydata(frame.mesh, self._translation_for(frame.entity))

        index = frame.sequence(self.timeline)
        if index is None:
            index = self._counter
        self._counter += 1

        if self.output_dir is not None:
            filename = f"{_file_stem(frame.entity)}_{index:08d}.vtp"
            path = os.path.join(self.output_dir, filename)
            try:
                poly.save(path)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to write '{path}': {e}")
                raise
            self._collections.setdefault(frame.entity, []).append((index, filename))
            logger.debug(f"Exported {frame.entity}@{index} -> {filename}")
            return

        self.plotter.add_mesh(
            poly,
            name=frame.entity,
            color=self.color,
            show_edges=self.show_edges,
            smooth_shading=False,
        )
        self.plotter.add_text(f"{self.timeline} {index}", name="time_label", font_size=10)
        self.plotter.update()

    def _write_collection(self, entity: str, entries: list[tuple[int, str]]) -> str:
        """Write a ParaView .pvd file listing the exported frames of one entity."""
        root = ET.Element("VTKFile", type="Collection", version="0.1")
        collection = ET.SubElement(root, "Collection")
        for index, filename in entries:
            ET.SubElement(collection, "DataSet", timestep=str(index), part="0", file=filename)

        path = os.path.join(self.output_dir, f"{_file_stem(entity)}.pvd")
        ET.ElementTree(root).write(path, xml_declaration=True, encoding="utf-8")
        logger.info(f"Wrote collection {path} ({len(entries)} frames)")
        return path
