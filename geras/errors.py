"""Typed errors raised by the compression pipeline, plus the text shown to users."""

import enum

import psutil


class Termination(enum.Enum):
    """How a subprocess ended."""
    EXIT = "exit"
    SIGNAL = "signal"
    LAUNCH_FAILED = "launch_failed"


class CompressionError(Exception):
    """Base class for every failure of a compression run."""


class InvalidInputError(CompressionError):
    pass


class MissingBinaryError(CompressionError):
    def __init__(self, tool):
        self.tool = tool
        super().__init__(f"{tool} binary not found in the app bundle or on PATH.")


class MissingResourcesError(CompressionError):
    def __init__(self, tool, share_dir):
        self.tool = tool
        self.share_dir = share_dir
        super().__init__(
            f"{tool} resources not found. Ensure {share_dir} is bundled next to the binary."
        )


class ProcessFailedError(CompressionError):
    def __init__(self, tool, code, termination, output=""):
        self.tool = tool
        self.code = code
        self.termination = termination
        self.output = output
        super().__init__(self._describe())

    def _describe(self):
        if self.termination is Termination.SIGNAL:
            name = "SIGKILL" if self.code == 9 else f"signal {self.code}"
            return f"{self.tool} was terminated by {name}."
        if not self.output:
            return f"{self.tool} failed with exit code {self.code}."
        return f"{self.tool} failed (code {self.code}): {self.output}"

    @property
    def killed(self):
        return self.termination is Termination.SIGNAL and self.code == 9


class LaunchFailedError(CompressionError):
    def __init__(self, tool, cause):
        self.tool = tool
        self.cause = cause
        super().__init__(f"Could not start {tool}: {cause}")


class AssemblyError(CompressionError):
    pass


class NoImagesProducedError(CompressionError):
    def __init__(self):
        super().__init__("Rasterization produced no images.")


def _available_memory_gb():
    try:
        return psutil.virtual_memory().available / (1024**3)
    except Exception:
        return None


def format_error(exc):
    """Render an exception as the message shown in the UI or on stderr."""
    if not isinstance(exc, CompressionError):
        return f"Error: {exc}"

    message = str(exc)
    if isinstance(exc, ProcessFailedError) and exc.killed:
        hint = ("This is often due to memory pressure on large PDFs. "
                "Try reducing the compression settings")
        if exc.tool == "qpdf":
            hint += " (lower the level or disable Recompress Flate / Optimize images)"
        hint += "."
        available = _available_memory_gb()
        if available is not None:
            hint += f" Available memory: {available:.1f} GB."
        message = f"{message} {hint}"
    return message
