"""
LOD Tiers & Cadence Scheduling
==============================
Each level of detail is refreshed on its own cadence: the coarse sphere on
every frame, finer ones every k-th frame. The scheduler keeps an explicit
"next due frame" counter per tier, so cadences and phases are data, not
modulo checks in the driving loop.

Classes:
    LodTier: Name, resolution, cadence and placement of one level of detail.
    CadenceScheduler: Decides which tiers are due on a given frame.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

import numpy as np


@dataclass(frozen=True)
class LodTier:
    """One level of detail in the scene."""
    name: str
    subdivisions: int
    every: int = 1  # emit once per `every` frames
    offset: int = 0  # first frame on which the tier is emitted
    translation: tuple[float, float, float] = (0.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Tier name must not be empty.")
        if self.subdivisions < 1:
            raise ValueError(f"Tier '{self.name}': subdivisions must be >= 1, got {self.subdivisions}")
        if self.every < 1:
            raise ValueError(f"Tier '{self.name}': cadence must be >= 1, got {self.every}")
        if self.offset < 0:
            raise ValueError(f"Tier '{self.name}': offset must be >= 0, got {self.offset}")
        if len(self.translation) != 3:
            raise ValueError(f"Tier '{self.name}': translation needs 3 components, got {self.translation}")
        # normalize to floats so equality and logging are stable
        object.__setattr__(self, "translation", tuple(float(c) for c in self.translation))

    @property
    def vertices_per_frame(self) -> int:
        return 6 * self.subdivisions * self.subdivisions

    def is_due(self, frame: int) -> bool:
        return frame >= self.offset and (frame - self.offset) % self.every == 0

    @classmethod
    def parse(cls, text: str) -> LodTier:
        """
        Parse a tier from ``NAME:SUBDIVISIONS:EVERY[:X,Y,Z]``.

        Examples:
            "LOD_10:10:1:-100,0,0"
            "LOD_100:100:10"

        Raises:
            ValueError: On a malformed string.
        """
        parts = text.split(":")
        if len(parts) not in (3, 4):
            raise ValueError(f"Expected NAME:SUBDIVISIONS:EVERY[:X,Y,Z], got {text!r}")

        name = parts[0].strip()
        try:
            subdivisions = int(parts[1])
            every = int(parts[2])
        except ValueError as e:
            raise ValueError(f"Invalid integer in tier {text!r}: {e}") from e

        translation: tuple[float, float, float] = (0.0, 0.0, 0.0)
        if len(parts) == 4:
            coords = parts[3].split(",")
            if len(coords) != 3:
                raise ValueError(f"Translation must be X,Y,Z in tier {text!r}")
            try:
                translation = (float(coords[0]), float(coords[1]), float(coords[2]))
            except ValueError as e:
                raise ValueError(f"Invalid translation in tier {text!r}: {e}") from e

        return cls(name=name, subdivisions=subdivisions, every=every, translation=translation)


@dataclass
class CadenceScheduler:
    """
    Per-tier counters deciding which tiers to emit on each frame.

    Frames must be presented in ascending order. Skipped frames are allowed;
    a tier whose due frame was skipped waits for its next multiple.
    """
    tiers: Sequence[LodTier]
    _next_due: dict[str, int] = field(init=False, repr=False)
    emitted: dict[str, int] = field(init=False)
    _last_frame: int = field(init=False, default=-1, repr=False)

    def __post_init__(self) -> None:
        self.tiers = tuple(self.tiers)
        names = [tier.name for tier in self.tiers]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate tier names: {duplicates}")
        self.reset()

    def reset(self) -> None:
        self._next_due = {tier.name: tier.offset for tier in self.tiers}
        self.emitted = {tier.name: 0 for tier in self.tiers}
        self._last_frame = -1

    def due(self, frame: int) -> list[LodTier]:
        """Return the tiers to emit on `frame`, in tier order, and advance their counters."""
        if frame <= self._last_frame:
            raise ValueError(f"Frames must be strictly increasing: got {frame} after {self._last_frame}")
        self._last_frame = frame

        due: list[LodTier] = []
        for tier in self.tiers:
            next_due = self._next_due[tier.name]
            if frame > next_due:
                # catch up over skipped frames without emitting
                missed = -(-(frame - next_due) // tier.every)
                next_due += missed * tier.every
            if frame == next_due:
                due.append(tier)
                self.emitted[tier.name] += 1
                next_due += tier.every
            self._next_due[tier.name] = next_due
        return due

    def frames_until(self, name: str) -> int:
        """Frames remaining until tier `name` is due (0 = due on the next presented frame)."""
        return max(0, self._next_due[name] - (self._last_frame + 1))

    def expected_emissions(self, n_frames: int) -> dict[str, int]:
        """Number of emissions per tier over frames 0 .. n_frames - 1, without advancing counters."""
        counts: dict[str, int] = {}
        for tier in self.tiers:
            span = n_frames - tier.offset
            counts[tier.name] = 0 if span <= 0 else -(-span // tier.every)
        return counts


def radius_at(frame: int, n_frames: int, max_radius: float = 50.0, min_radius: float = 0.1) -> float:
    """
    Radius of the ramp at `frame`: frame / n_frames * max_radius + min_radius (single precision).

    Args:
        frame: Current frame index.
        n_frames: Length of the time axis; must be > 0.
        max_radius: Radius growth over the whole axis.
        min_radius: Radius at frame 0.
    """
    if n_frames <= 0:
        raise ValueError(f"n_frames must be > 0, got {n_frames}")
    f32 = np.float32
    return float(f32(frame) / f32(n_frames) * f32(max_radius) + f32(min_radius))


def total_vertices(tiers: Iterable[LodTier], n_frames: int) -> int:
    """Vertices the whole run will emit, useful for sizing recordings and logging."""
    scheduler = CadenceScheduler(list(tiers))
    counts = scheduler.expected_emissions(n_frames)
    return sum(counts[t.name] * t.vertices_per_frame for t in scheduler.tiers)
