"""Translate strategy options into tool arguments and an environment overlay."""

import os
from dataclasses import dataclass, field
from typing import Optional

from .options import (
    MIN_MONO_DPI, PRESET_INFO, CleanupOptions, LossyOptions, RasterizeOptions, Strategy,
)
from .tools import ResourceBundle

# Ghostscript's jpeg device writes one file per page; the counter width bounds
# how many pages still sort correctly by file name.
PAGE_PATTERN = "page-%06d.jpg"

GS_BATCH_FLAGS = ["-dSAFER", "-dBATCH", "-dNOPAUSE", "-dQUIET"]


@dataclass(frozen=True)
class CommandLine:
    arguments: list
    environment: dict = field(default_factory=dict)


def _expect(options, cls):
    if not isinstance(options, cls):
        raise TypeError(f"expected {cls.__name__}, got {type(options).__name__}")


def cleanup_arguments(options: CleanupOptions, input_path, output_path) -> list:
    _expect(options, CleanupOptions)
    args = []
    if options.generate_object_streams:
        args.append("--object-streams=generate")
    if options.recompress_flate:
        args.append("--recompress-flate")
    args.append("--stream-data=compress")
    args.append(f"--compression-level={int(options.compression_level)}")
    if options.optimize_images:
        args.append("--optimize-images")
    return args + ["--", os.fspath(input_path), os.fspath(output_path)]


def resource_arguments(resources: Optional[ResourceBundle]) -> list:
    if resources is None:
        return []
    args = [f"-I{path}" for path in resources.include_paths]
    if resources.font_path:
        args.append(f"-sFONTPATH={resources.font_path}")
    return args


def resource_environment(resources: Optional[ResourceBundle]) -> dict:
    if resources is None:
        return {}
    env = {"GS_LIB": resources.lib_path_string}
    if resources.font_path:
        env["GS_FONTPATH"] = resources.font_path
    return env


def lossy_arguments(options: LossyOptions, input_path, output_path,
                    resources: Optional[ResourceBundle] = None) -> list:
    _expect(options, LossyOptions)
    args = resource_arguments(resources)
    args += GS_BATCH_FLAGS + [
        "-sDEVICE=pdfwrite",
        "-dCompatibilityLevel=1.4",
        f"-sOutputFile={os.fspath(output_path)}",
        "-dDetectDuplicateImages=true",
        "-dCompressFonts=true",
        "-dSubsetFonts=true",
        "-dAutoRotatePages=/None",
    ]

    pdf_settings = PRESET_INFO[options.preset].pdf_settings
    if pdf_settings:
        args.append(f"-dPDFSETTINGS={pdf_settings}")
    else:
        dpi = int(options.dpi)
        args += [
            "-dDownsampleColorImages=true",
            f"-dColorImageResolution={dpi}",
            "-dColorImageDownsampleType=/Bicubic",
            "-dColorImageFilter=/DCTEncode",
            "-dDownsampleGrayImages=true",
            f"-dGrayImageResolution={dpi}",
            "-dGrayImageDownsampleType=/Bicubic",
            "-dGrayImageFilter=/DCTEncode",
            "-dDownsampleMonoImages=true",
            f"-dMonoImageResolution={max(dpi, MIN_MONO_DPI)}",
            "-dMonoImageDownsampleType=/Subsample",
            f"-dJPEGQ={int(options.jpeg_quality)}",
        ]
    args.append(os.fspath(input_path))
    return args


def rasterize_arguments(options: RasterizeOptions, input_path, scratch_dir,
                        resources: Optional[ResourceBundle] = None) -> list:
    _expect(options, RasterizeOptions)
    pattern = os.path.join(os.fspath(scratch_dir), PAGE_PATTERN)
    return resource_arguments(resources) + GS_BATCH_FLAGS + [
        "-sDEVICE=jpeg",
        f"-dJPEGQ={int(options.jpeg_quality)}",
        f"-r{int(options.dpi)}",
        f"-sOutputFile={pattern}",
        os.fspath(input_path),
    ]


def _build_cleanup(options, input_path, target, resources):
    return CommandLine(cleanup_arguments(options, input_path, target))


def _build_lossy(options, input_path, target, resources):
    return CommandLine(lossy_arguments(options, input_path, target, resources),
                       resource_environment(resources))


def _build_rasterize(options, input_path, target, resources):
    return CommandLine(rasterize_arguments(options, input_path, target, resources),
                       resource_environment(resources))


BUILDERS = {
    Strategy.CLEANUP: _build_cleanup,
    Strategy.LOSSY: _build_lossy,
    Strategy.RASTERIZE: _build_rasterize,
}


def build(strategy: Strategy, options, input_path, target,
          resources: Optional[ResourceBundle] = None) -> CommandLine:
    """
    Build the command line for one run.

    ``target`` is the output PDF for cleanup and lossy runs and the scratch
    directory receiving page images for rasterize runs.
    """
    return BUILDERS[strategy](options, input_path, target, resources)
