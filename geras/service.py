"""
One compression run, end to end: locate the tool, build its command line,
run it, and for the rasterize strategy reassemble the page images.
"""

import logging
import os
import shutil
import tempfile
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from . import commands, runner, tools
from .assembler import assemble_pdf
from .errors import InvalidInputError, NoImagesProducedError
from .options import OPTIONS_TYPE, STRATEGY_INFO, Strategy

STRATEGY_TOOL = {
    Strategy.CLEANUP: tools.QPDF,
    Strategy.LOSSY: tools.GHOSTSCRIPT,
    Strategy.RASTERIZE: tools.GHOSTSCRIPT,
}

_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="geras-compress")


def file_size_bytes(path) -> int:
    try:
        return os.path.getsize(path)
    except OSError:
        return 0


def format_size(num_bytes) -> str:
    size = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


@dataclass
class CompressionResult:
    input_path: Path
    output_path: Path
    strategy: Strategy
    original_size: int
    compressed_size: int

    @property
    def bytes_saved(self) -> int:
        return max(self.original_size - self.compressed_size, 0)

    @property
    def ratio(self) -> float:
        if self.original_size == 0:
            return 1.0
        return self.compressed_size / self.original_size

    def summary(self) -> str:
        percent = (1.0 - self.ratio) * 100.0
        if percent > 0.1:
            return (f"Saved {percent:.1f}% "
                    f"({format_size(self.original_size)} -> {format_size(self.compressed_size)})")
        return f"Output is {self.ratio * 100:.1f}% of input."


def default_output_path(input_path, strategy: Strategy) -> Path:
    input_path = Path(input_path)
    suffix = STRATEGY_INFO[strategy].output_suffix
    return input_path.with_name(f"{input_path.stem}-{suffix}.pdf")


def _validate_paths(input_path: Path, output_path: Path):
    if not input_path.is_file():
        raise InvalidInputError(f"Input PDF not found: {input_path}")
    if input_path.resolve() == output_path.resolve():
        raise InvalidInputError("Output must be a different file than the input.")


def list_page_images(directory) -> list:
    """Page images in ``directory`` ordered by file name."""
    pages = [p for p in Path(directory).iterdir()
             if p.is_file() and p.suffix.lower() == ".jpg"]
    return sorted(pages, key=lambda p: p.name)


def _rasterize(tool, options, input_path, output_path):
    scratch = Path(tempfile.gettempdir()) / f"geras-rasterize-{uuid.uuid4().hex}"
    scratch.mkdir(parents=True)
    try:
        cmd = commands.build(Strategy.RASTERIZE, options, input_path, scratch, tool.resources)
        runner.run(tool.path, cmd.arguments, cmd.environment).raise_for_status(tool.name)

        pages = list_page_images(scratch)
        if not pages:
            raise NoImagesProducedError()
        logging.info(f"Rasterized {len(pages)} pages into {scratch}")
        assemble_pdf(pages, output_path, options.dpi)
    finally:
        shutil.rmtree(scratch, ignore_errors=True)


def compress(input_path, output_path, strategy: Strategy, options) -> CompressionResult:
    """Run one compression synchronously; raises CompressionError subclasses on failure."""
    input_path = Path(input_path)
    output_path = Path(output_path)
    if not isinstance(options, OPTIONS_TYPE[strategy]):
        raise TypeError(f"{strategy.value} needs {OPTIONS_TYPE[strategy].__name__}, "
                        f"got {type(options).__name__}")
    _validate_paths(input_path, output_path)

    tool = tools.locate(STRATEGY_TOOL[strategy])
    logging.info(f"{STRATEGY_INFO[strategy].title}: {input_path} -> {output_path} with {options}")

    if strategy is Strategy.RASTERIZE:
        _rasterize(tool, options, input_path, output_path)
    else:
        cmd = commands.build(strategy, options, input_path, output_path, tool.resources)
        runner.run(tool.path, cmd.arguments, cmd.environment).raise_for_status(tool.name)

    return CompressionResult(
        input_path=input_path,
        output_path=output_path,
        strategy=strategy,
        original_size=file_size_bytes(input_path),
        compressed_size=file_size_bytes(output_path),
    )


def submit(input_path, output_path, strategy: Strategy, options):
    """Schedule ``compress`` on a worker thread and return its Future."""
    return _executor.submit(compress, input_path, output_path, strategy, options)
