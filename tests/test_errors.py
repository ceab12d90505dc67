from __future__ import annotations

from geras.errors import (
    CompressionError, LaunchFailedError, MissingBinaryError, NoImagesProducedError,
    ProcessFailedError, Termination, format_error,
)


def test_exit_code_messages() -> None:
    assert str(ProcessFailedError("qpdf", 2, Termination.EXIT, "")) == "qpdf failed with exit code 2."
    assert str(ProcessFailedError("qpdf", 3, Termination.EXIT, "bad xref")) == "qpdf failed (code 3): bad xref"


def test_signal_nine_gets_memory_hint() -> None:
    exc = ProcessFailedError("ghostscript", 9, Termination.SIGNAL, "")
    message = format_error(exc)

    assert message.startswith("ghostscript was terminated by SIGKILL.")
    assert "memory pressure" in message
    assert "reducing the compression settings" in message


def test_qpdf_hint_names_its_settings() -> None:
    message = format_error(ProcessFailedError("qpdf", 9, Termination.SIGNAL, ""))
    assert "Recompress Flate" in message


def test_other_signals_have_no_hint() -> None:
    message = format_error(ProcessFailedError("ghostscript", 15, Termination.SIGNAL, ""))
    assert message == "ghostscript was terminated by signal 15."


def test_exit_status_nine_is_not_a_kill() -> None:
    exc = ProcessFailedError("qpdf", 9, Termination.EXIT, "")
    assert not exc.killed
    assert "memory" not in format_error(exc)


def test_plain_errors_pass_through() -> None:
    assert format_error(MissingBinaryError("qpdf")) == "qpdf binary not found in the app bundle or on PATH."
    assert format_error(NoImagesProducedError()) == "Rasterization produced no images."
    assert format_error(ValueError("boom")) == "Error: boom"


def test_hierarchy() -> None:
    assert issubclass(LaunchFailedError, CompressionError)
    exc = LaunchFailedError("qpdf", PermissionError("denied"))
    assert "denied" in str(exc)
