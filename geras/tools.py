"""
Locate the external tools (qpdf, Ghostscript) and Ghostscript's resource tree.

A copy shipped inside the application's vendor directory wins over one found
on PATH. Only a bundled Ghostscript gets its resources discovered; a system
install is trusted to know where its own files live.
"""

import logging
import os
import re
import stat
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import MissingBinaryError, MissingResourcesError

VENDOR_DIR_ENV = "GERAS_VENDOR_DIR"

QPDF = "qpdf"
GHOSTSCRIPT = "ghostscript"


@dataclass(frozen=True)
class ToolSpec:
    name: str
    executable: str
    bundle_subdir: str
    share_name: Optional[str] = None  # set when the tool needs a resource bundle


TOOL_SPECS = {
    QPDF: ToolSpec(QPDF, "qpdf", "qpdf"),
    GHOSTSCRIPT: ToolSpec(GHOSTSCRIPT, "gs", "ghostscript", share_name="ghostscript"),
}


@dataclass(frozen=True)
class ResourceBundle:
    lib_paths: tuple
    include_paths: tuple
    font_path: Optional[str] = None

    @property
    def lib_path_string(self):
        return ":".join(self.lib_paths)


@dataclass(frozen=True)
class ResolvedTool:
    name: str
    path: Path
    bundled: bool = False
    resources: Optional[ResourceBundle] = field(default=None)


def vendor_root() -> Path:
    override = os.environ.get(VENDOR_DIR_ENV)
    if override:
        return Path(override)
    if hasattr(sys, '_MEIPASS'):
        # Running as PyInstaller bundle
        return Path(sys._MEIPASS) / "vendor"
    return Path(__file__).resolve().parent.parent / "vendor"


def _is_executable_file(path: Path) -> bool:
    try:
        st = path.stat()
    except OSError:
        return False
    return stat.S_ISREG(st.st_mode) and os.access(path, os.X_OK)


def find_on_path(executable: str, search_path: Optional[str] = None) -> Optional[Path]:
    """Return the first executable regular file named ``executable`` on PATH."""
    if search_path is None:
        search_path = os.environ.get("PATH", "")
    for directory in search_path.split(os.pathsep):
        if not directory:
            continue
        candidate = Path(directory) / executable
        if _is_executable_file(candidate):
            return candidate
    return None


def _version_key(name):
    # "10.1" > "9.0": compare digit runs as numbers
    parts = tuple((0, int(part), "") if part.isdigit() else (1, 0, part)
                  for part in re.split(r"(\d+)", name) if part)
    return parts, name


def discover_resources(tool_dir: Path, share_name: str) -> Optional[ResourceBundle]:
    """
    Build the resource bundle for a tool living in ``tool_dir``.

    Looks under ``share/<share_name>``: the greatest version-named subdirectory
    becomes the resource root, otherwise the share dir itself when it holds a
    ``Resource`` tree. Returns None when the share dir cannot be listed or no
    usable root exists.
    """
    share = tool_dir / "share" / share_name
    try:
        entries = [e for e in share.iterdir() if not e.name.startswith(".")]
    except OSError as e:
        logging.warning(f"Cannot list {share}: {e}")
        return None

    version_dirs = sorted(
        (e for e in entries if e.name[:1].isdigit() and e.is_dir()),
        key=lambda e: _version_key(e.name),
    )
    if version_dirs:
        root = version_dirs[-1].resolve()
    elif (share / "Resource").exists():
        # Some bundles flatten resources directly under share/<tool>
        root = share
    else:
        return None

    resource_init = root / "Resource" / "Init"
    resource_fonts = root / "Resource" / "Font"
    legacy_fonts = share / "fonts"
    resource_lib = root / "lib"

    lib_paths = [str(root)]
    include_paths = [str(root)]
    if resource_init.exists():
        include_paths.append(str(resource_init))
    if resource_lib.exists():
        lib_paths.append(str(resource_lib))
        include_paths.append(str(resource_lib))

    font_path = None
    if resource_fonts.exists():
        font_path = str(resource_fonts)
    elif legacy_fonts.exists():
        font_path = str(legacy_fonts)
    if font_path:
        lib_paths.append(font_path)

    return ResourceBundle(tuple(lib_paths), tuple(include_paths), font_path)


def resolve(name: str, root: Optional[Path] = None, search_path: Optional[str] = None) -> ResolvedTool:
    """Resolve a tool without touching the cache."""
    spec = TOOL_SPECS[name]
    root = vendor_root() if root is None else Path(root)

    bundled = root / spec.bundle_subdir / spec.executable
    if _is_executable_file(bundled):
        resources = None
        if spec.share_name:
            resources = discover_resources(bundled.parent, spec.share_name)
            if resources is None:
                raise MissingResourcesError(name, bundled.parent / "share" / spec.share_name)
        logging.info(f"Using bundled {name}: {bundled}")
        return ResolvedTool(name, bundled, bundled=True, resources=resources)

    external = find_on_path(spec.executable, search_path)
    if external is not None:
        logging.info(f"Using {name} from PATH: {external}")
        return ResolvedTool(name, external)

    raise MissingBinaryError(name)


_cache = {}
_cache_lock = threading.Lock()


def locate(name: str) -> ResolvedTool:
    """Resolve a tool once per process; failures are not cached."""
    with _cache_lock:
        tool = _cache.get(name)
        if tool is None:
            tool = resolve(name)
            _cache[name] = tool
        return tool


def clear_cache():
    with _cache_lock:
        _cache.clear()


def tool_status():
    """Map each tool name to its resolved path, or the error text if it is unusable."""
    status = {}
    for name in TOOL_SPECS:
        try:
            status[name] = (True, str(locate(name).path))
        except (MissingBinaryError, MissingResourcesError) as e:
            status[name] = (False, str(e))
    return status
