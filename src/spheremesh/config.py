"""
Configuration & Defaults
========================
This module serves as the central registry for the streaming defaults.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (frame counts, radius ramp, tier
   table) from being scattered through the driver and the CLI.
2. Overrides: The CLI builds a StreamConfig from these defaults and replaces
   only the fields the user passed.

Exports:
    DEFAULT_FRAMES (int): Length of the synthetic time axis.
    DEFAULT_TIERS (tuple[LodTier, ...]): LOD_10 / LOD_100 / LOD_1000.
    StreamConfig: Dataclass bundling one streaming run.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import math

from spheremesh.stream.schedule import LodTier

# Global Constants
APPLICATION_ID: str = "mesh_over_custom_time"
TIMELINE: str = "frame"

DEFAULT_FRAMES: int = 10_000
MAX_RADIUS: float = 50.0
MIN_RADIUS: float = 0.1

SCENE_ROOT: str = "spheres"
VIEW_COORDINATES: str = "RIGHT_HAND_Y_UP"

# 600 / 60k / 6M vertices per emitted frame
DEFAULT_TIERS: tuple[LodTier, ...] = (
    LodTier(name="LOD_10", subdivisions=10, every=1, translation=(-100.0, 0.0, 0.0)),
    LodTier(name="LOD_100", subdivisions=100, every=10),
    LodTier(name="LOD_1000", subdivisions=1000, every=100, translation=(100.0, 0.0, 0.0)),
)


@dataclass
class StreamConfig:
    """Parameters of one streaming run."""
    n_frames: int = DEFAULT_FRAMES
    max_radius: float = MAX_RADIUS
    min_radius: float = MIN_RADIUS
    timeline: str = TIMELINE
    scene_root: str = SCENE_ROOT
    view_coordinates: str = VIEW_COORDINATES
    tiers: tuple[LodTier, ...] = field(default_factory=lambda: DEFAULT_TIERS)

    def __post_init__(self) -> None:
        if self.n_frames < 0:
            raise ValueError(f"n_frames must be non-negative, got {self.n_frames}")
        for name in ("min_radius", "max_radius"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0.0:
                raise ValueError(f"{name} must be a finite non-negative number, got {value}")
        if not self.tiers:
            raise ValueError("At least one LOD tier is required.")
