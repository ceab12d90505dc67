"""Command line interface: run one compression without the desktop window."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from . import service, tools
from .errors import CompressionError, format_error
from .options import (
    CLEANUP_PRESETS, CleanupOptions, LossyOptions, LossyPreset, PRESET_INFO,
    RasterizeOptions, Strategy,
)


def _add_io(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("input", help="PDF to compress")
    parser.add_argument("-o", "--output", help="Destination PDF (default: <name>-<mode>.pdf beside the input)")


def _cleanup_options(args) -> CleanupOptions:
    base = CLEANUP_PRESETS[args.preset] if args.preset else CleanupOptions()
    return CleanupOptions(
        compression_level=args.level if args.level is not None else base.compression_level,
        recompress_flate=args.recompress_flate or base.recompress_flate,
        generate_object_streams=base.generate_object_streams and not args.no_object_streams,
        optimize_images=args.optimize_images or base.optimize_images,
    )


def _lossy_options(args) -> LossyOptions:
    preset = LossyPreset(args.preset)
    info = PRESET_INFO[preset]
    return LossyOptions(
        preset=preset,
        dpi=args.dpi if args.dpi is not None else info.default_dpi,
        jpeg_quality=args.quality if args.quality is not None else info.default_quality,
    )


def _rasterize_options(args) -> RasterizeOptions:
    defaults = RasterizeOptions()
    return RasterizeOptions(
        dpi=args.dpi if args.dpi is not None else defaults.dpi,
        jpeg_quality=args.quality if args.quality is not None else defaults.jpeg_quality,
    )


def _create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="geras-cli", description="Shrink PDFs with qpdf and Ghostscript")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every tool invocation")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True

    cleanup = subparsers.add_parser("cleanup", help="Lossless cleanup with qpdf")
    _add_io(cleanup)
    cleanup.add_argument("--preset", choices=sorted(CLEANUP_PRESETS))
    cleanup.add_argument("--level", type=int, help="Compression level 1-9")
    cleanup.add_argument("--recompress-flate", action="store_true")
    cleanup.add_argument("--no-object-streams", action="store_true")
    cleanup.add_argument("--optimize-images", action="store_true")
    cleanup.set_defaults(strategy=Strategy.CLEANUP, make_options=_cleanup_options)

    lossy = subparsers.add_parser("lossy", help="Downsample images with Ghostscript, keep text")
    _add_io(lossy)
    lossy.add_argument("--preset", choices=[p.value for p in LossyPreset],
                       default=LossyPreset.HIGH_QUALITY.value)
    lossy.add_argument("--dpi", type=int)
    lossy.add_argument("--quality", type=int, help="JPEG quality")
    lossy.set_defaults(strategy=Strategy.LOSSY, make_options=_lossy_options)

    raster = subparsers.add_parser("rasterize", help="Flatten every page to an image")
    _add_io(raster)
    raster.add_argument("--dpi", type=int)
    raster.add_argument("--quality", type=int, help="JPEG quality")
    raster.set_defaults(strategy=Strategy.RASTERIZE, make_options=_rasterize_options)

    subparsers.add_parser("tools", help="Show where qpdf and Ghostscript were found")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _create_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format='%(asctime)s - %(levelname)s - %(message)s')

    if args.command == "tools":
        missing = False
        for name, (ok, detail) in tools.tool_status().items():
            print(f"{name}: {detail}")
            missing = missing or not ok
        return 1 if missing else 0

    try:
        options = args.make_options(args)
    except ValueError as exc:
        parser.error(str(exc))
    output = args.output or service.default_output_path(args.input, args.strategy)

    future = service.submit(args.input, output, args.strategy, options)
    try:
        result = future.result()
    except CompressionError as exc:
        print(format_error(exc), file=sys.stderr)
        return 1
    print(f"{result.output_path}: {result.summary()}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
