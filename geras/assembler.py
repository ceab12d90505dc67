import logging
import os
import tempfile

import fitz  # PyMuPDF
from PIL import Image

from .errors import AssemblyError


def _read_page(path):
    """Return (jpeg bytes, pixel width, pixel height); the file is closed on return."""
    try:
        with Image.open(path) as img:
            width, height = img.size
        with open(path, "rb") as fh:
            data = fh.read()
    except Exception as e:
        raise AssemblyError(f"Failed to read rasterized image {os.path.basename(path)}: {e}") from e
    return data, width, height


def assemble_pdf(images, output_path, dpi):
    """
    Write ``images`` (in order, one per page) into a single PDF at ``output_path``.

    Each image is embedded as-is and its page is sized so the image renders at
    ``dpi``. Pages are added one at a time, so only one image file is open at
    once. The document is written next to the destination first and moved into
    place only once complete, so a failure never leaves a partial output behind.
    """
    images = [os.fspath(p) for p in images]
    if not images:
        raise AssemblyError("No images to assemble.")

    output_path = os.fspath(output_path)
    out_dir = os.path.dirname(os.path.abspath(output_path))
    try:
        fd, tmp_path = tempfile.mkstemp(suffix=".pdf", prefix=".geras-", dir=out_dir)
        os.close(fd)
    except OSError as e:
        raise AssemblyError(f"Failed to create PDF destination: {e}") from e

    scale = 72.0 / float(dpi)
    out = fitz.open()
    try:
        for path in images:
            data, width, height = _read_page(path)
            page = out.new_page(width=width * scale, height=height * scale)
            try:
                page.insert_image(page.rect, stream=data)
            except Exception as e:
                raise AssemblyError(f"Failed to embed {os.path.basename(path)}: {e}") from e
        try:
            out.save(tmp_path, garbage=3, deflate=True)
        except Exception as e:
            raise AssemblyError(f"Failed to finalize rasterized PDF: {e}") from e
        finally:
            out.close()
        try:
            os.replace(tmp_path, output_path)
        except OSError as e:
            raise AssemblyError(f"Failed to move rasterized PDF into place: {e}") from e
    except AssemblyError:
        if not out.is_closed:
            out.close()
        try:
            os.remove(tmp_path)
        except OSError:
            pass
        raise

    logging.info(f"Assembled {len(images)} pages at {dpi} DPI into {output_path}")
