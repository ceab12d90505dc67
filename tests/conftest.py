from __future__ import annotations

import stat
import sys
import textwrap
from pathlib import Path
from typing import Callable

import fitz
import pytest
from PIL import Image

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from geras import tools  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_tools(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the vendor dir at an empty tree and start every test with a cold cache."""
    vendor = tmp_path / "vendor"
    vendor.mkdir()
    monkeypatch.setenv(tools.VENDOR_DIR_ENV, str(vendor))
    tools.clear_cache()
    yield vendor
    tools.clear_cache()


@pytest.fixture()
def vendor_dir(isolated_tools: Path) -> Path:
    return isolated_tools


@pytest.fixture()
def make_script() -> Callable[[Path, str], Path]:
    def _make(path: Path, body: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body))
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path
    return _make


FAKE_QPDF = """
import shutil, sys
args = sys.argv[1:]
sep = args.index("--")
src, dst = args[sep + 1], args[sep + 2]
shutil.copyfile(src, dst)
print("  qpdf done  ")
"""

FAKE_GS = """
import os, sys
from PIL import Image
args = sys.argv[1:]
out = next(a.split("=", 1)[1] for a in args if a.startswith("-sOutputFile="))
with open(os.path.join(os.path.dirname(os.path.abspath(__file__)), "last_env.txt"), "w") as fh:
    fh.write(os.environ.get("GS_LIB", "") + "\\n" + os.environ.get("GS_FONTPATH", ""))
if "-sDEVICE=jpeg" in args:
    pages = int(os.environ.get("FAKE_GS_PAGES", "3"))
    # write in reverse so directory order differs from page order
    for n in range(pages, 0, -1):
        Image.new("RGB", (100 * n, 50), (255, 255, 255)).save(out % n, "JPEG")
else:
    with open(args[-1], "rb") as src, open(out, "wb") as dst:
        dst.write(src.read())
"""


@pytest.fixture()
def fake_qpdf(vendor_dir: Path, make_script) -> Path:
    return make_script(vendor_dir / "qpdf" / "qpdf", FAKE_QPDF)


@pytest.fixture()
def gs_share(vendor_dir: Path) -> Path:
    """A bundled Ghostscript share tree with one version directory."""
    root = vendor_dir / "ghostscript" / "share" / "ghostscript" / "10.01"
    (root / "Resource" / "Init").mkdir(parents=True)
    (root / "Resource" / "Font").mkdir(parents=True)
    (root / "lib").mkdir()
    return root


@pytest.fixture()
def fake_gs(vendor_dir: Path, gs_share: Path, make_script) -> Path:
    return make_script(vendor_dir / "ghostscript" / "gs", FAKE_GS)


@pytest.fixture()
def sample_pdf(tmp_path: Path) -> Path:
    path = tmp_path / "sample.pdf"
    doc = fitz.open()
    for i in range(2):
        page = doc.new_page(width=200, height=200)
        page.insert_text((20, 40), f"Page {i + 1}")
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture()
def page_images(tmp_path: Path) -> list[Path]:
    """Three page images, written last page first."""
    folder = tmp_path / "pages"
    folder.mkdir()
    paths = []
    for n in (3, 1, 2):
        path = folder / f"page-{n:04d}.jpg"
        Image.new("RGB", (72 * n, 72), (200, 200, 200)).save(path, "JPEG")
        paths.append(path)
    return paths


@pytest.fixture()
def scratch_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    import tempfile

    root = tmp_path / "scratch"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root

