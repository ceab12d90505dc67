from __future__ import annotations

import sys
from pathlib import Path

import fitz
import pytest

from geras import service
from geras.errors import (
    InvalidInputError, MissingBinaryError, NoImagesProducedError, ProcessFailedError, Termination,
)
from geras.options import CleanupOptions, LossyOptions, LossyPreset, RasterizeOptions, Strategy

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="fake tools rely on shebang scripts")


@pytest.fixture(autouse=True)
def no_system_tools(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PATH", str(tmp_path / "empty-path"))


def test_cleanup_runs_bundled_qpdf(fake_qpdf: Path, sample_pdf: Path, tmp_path: Path) -> None:
    output = tmp_path / "out.pdf"
    result = service.compress(sample_pdf, output, Strategy.CLEANUP, CleanupOptions(compression_level=9))

    assert output.read_bytes() == sample_pdf.read_bytes()
    assert result.strategy is Strategy.CLEANUP
    assert result.original_size == result.compressed_size == sample_pdf.stat().st_size
    assert result.summary() == "Output is 100.0% of input."


def test_lossy_passes_bundle_environment(fake_gs: Path, gs_share: Path, sample_pdf: Path, tmp_path: Path) -> None:
    output = tmp_path / "out.pdf"
    service.compress(sample_pdf, output, Strategy.LOSSY, LossyOptions.for_preset(LossyPreset.CUSTOM))

    assert output.exists()
    gs_lib, gs_fontpath = (fake_gs.parent / "last_env.txt").read_text().split("\n")
    assert gs_lib.split(":")[0] == str(gs_share.resolve())
    assert gs_fontpath == str(gs_share.resolve() / "Resource" / "Font")


def test_rasterize_reassembles_pages(fake_gs: Path, sample_pdf: Path, tmp_path: Path, scratch_root: Path) -> None:
    output = tmp_path / "flat.pdf"
    result = service.compress(sample_pdf, output, Strategy.RASTERIZE, RasterizeOptions(dpi=72, jpeg_quality=60))

    with fitz.open(str(output)) as doc:
        assert doc.page_count == 3
        assert [round(p.rect.width) for p in doc] == [100, 200, 300]
    assert result.compressed_size == output.stat().st_size
    assert list(scratch_root.iterdir()) == []


def test_rasterize_without_pages(fake_gs: Path, sample_pdf: Path, tmp_path: Path, scratch_root: Path,
                                 monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FAKE_GS_PAGES", "0")
    output = tmp_path / "flat.pdf"

    with pytest.raises(NoImagesProducedError):
        service.compress(sample_pdf, output, Strategy.RASTERIZE, RasterizeOptions())

    assert not output.exists()
    assert list(scratch_root.iterdir()) == []


def test_tool_failure_is_reported(vendor_dir: Path, make_script, sample_pdf: Path, tmp_path: Path,
                                  scratch_root: Path) -> None:
    make_script(vendor_dir / "qpdf" / "qpdf", """
        import sys
        print("qpdf: broken xref table", file=sys.stderr)
        sys.exit(2)
    """)

    with pytest.raises(ProcessFailedError) as info:
        service.compress(sample_pdf, tmp_path / "out.pdf", Strategy.CLEANUP, CleanupOptions())

    assert info.value.code == 2
    assert info.value.termination is Termination.EXIT
    assert info.value.output == "qpdf: broken xref table"


def test_failed_rasterize_still_removes_scratch(vendor_dir: Path, gs_share: Path, make_script,
                                                sample_pdf: Path, tmp_path: Path, scratch_root: Path) -> None:
    make_script(vendor_dir / "ghostscript" / "gs", """
        import sys
        sys.exit(1)
    """)

    with pytest.raises(ProcessFailedError):
        service.compress(sample_pdf, tmp_path / "out.pdf", Strategy.RASTERIZE, RasterizeOptions())
    assert list(scratch_root.iterdir()) == []


def test_missing_tool(sample_pdf: Path, tmp_path: Path) -> None:
    with pytest.raises(MissingBinaryError):
        service.compress(sample_pdf, tmp_path / "out.pdf", Strategy.LOSSY, LossyOptions())


def test_input_validation(fake_qpdf: Path, sample_pdf: Path, tmp_path: Path) -> None:
    with pytest.raises(InvalidInputError):
        service.compress(tmp_path / "missing.pdf", tmp_path / "out.pdf", Strategy.CLEANUP, CleanupOptions())
    with pytest.raises(InvalidInputError):
        service.compress(sample_pdf, sample_pdf, Strategy.CLEANUP, CleanupOptions())


def test_options_must_match_strategy(sample_pdf: Path, tmp_path: Path) -> None:
    with pytest.raises(TypeError):
        service.compress(sample_pdf, tmp_path / "out.pdf", Strategy.RASTERIZE, LossyOptions())


def test_submit_resolves_future(fake_qpdf: Path, sample_pdf: Path, tmp_path: Path) -> None:
    future = service.submit(sample_pdf, tmp_path / "out.pdf", Strategy.CLEANUP, CleanupOptions())
    assert future.result(timeout=60).output_path == tmp_path / "out.pdf"


def test_submit_delivers_failure(sample_pdf: Path, tmp_path: Path) -> None:
    future = service.submit(sample_pdf, tmp_path / "out.pdf", Strategy.CLEANUP, CleanupOptions())
    assert isinstance(future.exception(timeout=60), MissingBinaryError)


@pytest.mark.parametrize("strategy,name", [
    (Strategy.CLEANUP, "report-compressed.pdf"),
    (Strategy.LOSSY, "report-lossy.pdf"),
    (Strategy.RASTERIZE, "report-rasterized.pdf"),
])
def test_default_output_path(strategy: Strategy, name: str, tmp_path: Path) -> None:
    assert service.default_output_path(tmp_path / "report.pdf", strategy) == tmp_path / name


def test_summary_reports_savings() -> None:
    result = service.CompressionResult(Path("a.pdf"), Path("b.pdf"), Strategy.LOSSY,
                                       original_size=10 * 1024 * 1024, compressed_size=5 * 1024 * 1024)
    assert result.bytes_saved == 5 * 1024 * 1024
    assert result.ratio == 0.5
    assert result.summary() == "Saved 50.0% (10.0 MB -> 5.0 MB)"


def test_format_size() -> None:
    assert service.format_size(512) == "512.0 B"
    assert service.format_size(1536) == "1.5 KB"
