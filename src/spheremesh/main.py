"""
Command-Line Entry Point
========================
Builds a StreamConfig from the command line, picks a sink and runs the stream.

Sinks:
    --save PATH.h5       HDF5 recording (default: spheres.h5)
    --export-vtp DIR     one .vtp file per mesh plus .pvd collections
    --show               live PyVista window
    --dry-run            generate everything, keep only frame stamps
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from spheremesh import __version__
from spheremesh.config import (
    APPLICATION_ID, DEFAULT_FRAMES, DEFAULT_TIERS, MAX_RADIUS, MIN_RADIUS, StreamConfig,
)
from spheremesh.logging_config import parse_level, setup_logging
from spheremesh.stream.driver import stream_spheres
from spheremesh.stream.schedule import LodTier
from spheremesh.stream.sinks import MemorySink, MeshSink

logger = logging.getLogger(__name__)


def _tier(text: str) -> LodTier:
    try:
        return LodTier.parse(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spheremesh",
        description="Stream growing sphere meshes at several levels of detail.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--frames", type=int, default=DEFAULT_FRAMES,
                        help="Length of the frame timeline (default: %(default)s)")
    parser.add_argument("--max-radius", type=float, default=MAX_RADIUS,
                        help="Radius growth over the whole timeline (default: %(default)s)")
    parser.add_argument("--min-radius", type=float, default=MIN_RADIUS,
                        help="Radius at frame 0 (default: %(default)s)")
    parser.add_argument("--tier", dest="tiers", type=_tier, action="append", metavar="NAME:N:EVERY[:X,Y,Z]",
                        help="LOD tier; repeat for several. Replaces the default LOD_10/100/1000 table.")

    out = parser.add_mutually_exclusive_group()
    out.add_argument("--save", metavar="PATH", help="Write an HDF5 recording")
    out.add_argument("--export-vtp", metavar="DIR", help="Write .vtp files and .pvd collections")
    out.add_argument("--show", action="store_true", help="Open a live PyVista window")
    out.add_argument("--dry-run", action="store_true", help="Generate meshes without storing them")

    parser.add_argument("--compression", choices=["gzip", "lzf"], default=None,
                        help="Dataset compression for --save")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: %(default)s)")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    return parser


def make_sink(args: argparse.Namespace) -> MeshSink:
    """Pick the sink requested on the command line. Heavy backends are imported lazily."""
    if args.dry_run:
        return MemorySink(keep_meshes=False)
    if args.show:
        from spheremesh.stream.viewer import PyVistaSink
        return PyVistaSink()
    if args.export_vtp:
        from spheremesh.stream.viewer import PyVistaSink
        return PyVistaSink(output_dir=args.export_vtp)

    from spheremesh.stream.recording import Hdf5RecordingSink
    return Hdf5RecordingSink(args.save or "spheres.h5", application=APPLICATION_ID, compression=args.compression)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        level = parse_level(args.log_level)
        config = StreamConfig(
            n_frames=args.frames,
            max_radius=args.max_radius,
            min_radius=args.min_radius,
            tiers=tuple(args.tiers) if args.tiers else DEFAULT_TIERS,
        )
    except ValueError as e:
        parser.error(str(e))

    setup_logging(level=level, log_file=args.log_file)

    sink = make_sink(args)
    try:
        with sink:
            stream_spheres(sink, config)
    except (OSError, RuntimeError, ValueError) as e:
        logger.error(f"Streaming failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
