"""
Geras – desktop front-end for shrinking PDFs with qpdf and Ghostscript.

Three ways to compress:
- Clean Up: qpdf rewrites the file losslessly (stream compression, object streams).
- Make Smaller: Ghostscript pdfwrite downsamples images but keeps text selectable.
- Flatten: Ghostscript renders every page to JPEG; the pages are reassembled into a PDF.

All work runs in a QThread; results come back through Qt signals.
"""

import sys
import os
import logging

import psutil

from PyQt6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QFileDialog, QSpinBox, QMessageBox, QLineEdit, QGroupBox, QRadioButton,
    QButtonGroup, QCheckBox, QComboBox, QStackedWidget, QProgressBar
)
from PyQt6.QtCore import Qt, QThread, pyqtSignal, QTimer
from PyQt6.QtGui import QDragEnterEvent, QDropEvent

from . import service, tools
from .analyzer import PDFAnalyzer
from .errors import format_error
from .options import (
    COMPRESSION_LEVEL_RANGE, LOSSY_DPI_RANGE, LOSSY_QUALITY_RANGE, PRESET_INFO,
    RASTER_DPI_RANGE, RASTER_QUALITY_RANGE, STRATEGY_INFO,
    CleanupOptions, LossyOptions, LossyPreset, RasterizeOptions, Strategy,
)


# ------------------------- Worker -------------------------

class CompressionWorker(QThread):
    """Worker thread to run one compression without freezing the UI"""
    finished = pyqtSignal(bool, str)

    def __init__(self, input_path, output_path, strategy, options):
        super().__init__()
        self.input_path = input_path
        self.output_path = output_path
        self.strategy = strategy
        self.options = options
        self.result = None

    def run(self):
        try:
            self.result = service.compress(self.input_path, self.output_path, self.strategy, self.options)
            self.finished.emit(True, f"Done. Output saved to {os.path.basename(self.output_path)}")
        except Exception as e:
            logging.exception("Compression error")
            self.finished.emit(False, format_error(e))


# ------------------------- UI -------------------------

class DropArea(QWidget):
    file_dropped = pyqtSignal(str)

    def __init__(self):
        super().__init__()
        self.setAcceptDrops(True)
        layout = QVBoxLayout()
        label = QLabel("Drag a PDF here or click to select")
        label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(label)
        self.label = label
        self.setLayout(layout)

    def dragEnterEvent(self, event: QDragEnterEvent):
        if event.mimeData().hasUrls() and event.mimeData().urls()[0].path().lower().endswith(".pdf"):
            event.acceptProposedAction()

    def dropEvent(self, event: QDropEvent):
        self.file_dropped.emit(event.mimeData().urls()[0].toLocalFile())

    def mousePressEvent(self, _):
        path, _ = QFileDialog.getOpenFileName(self, "Select PDF", "", "PDF Files (*.pdf)")
        if path:
            self.file_dropped.emit(path)


def _spin(value_range, value, suffix=""):
    lo, hi, step = value_range
    spin = QSpinBox()
    spin.setRange(lo, hi)
    spin.setSingleStep(step)
    spin.setValue(value)
    if suffix:
        spin.setSuffix(suffix)
    return spin


class GerasApp(QMainWindow):
    def __init__(self):
        super().__init__()
        self.input_file_path = None
        self.worker = None
        self.pdf_info = None
        self.original_size = None

        self.setWindowTitle("Geras PDF Compressor")
        self.setMinimumSize(640, 520)

        self._build_ui()
        self._check_dependencies()

        self.memory_timer = QTimer()
        self.memory_timer.timeout.connect(self._show_resources)
        self.memory_timer.start(2000)

    def _build_ui(self):
        main = QWidget()
        layout = QVBoxLayout()

        # System status
        sys_group = QGroupBox("System Status")
        sys_h = QHBoxLayout()
        self.dependency_status = QLabel("Checking tools...")
        self.memory_status = QLabel("Memory: Checking...")
        sys_h.addWidget(self.dependency_status)
        sys_h.addWidget(self.memory_status)
        sys_group.setLayout(sys_h)
        layout.addWidget(sys_group)

        # Drop area
        self.drop_area = DropArea()
        self.drop_area.file_dropped.connect(self._file_selected)
        layout.addWidget(self.drop_area)

        # File info
        info_group = QGroupBox("File Information")
        info_v = QVBoxLayout()
        self.file_label = QLabel("No file selected")
        self.file_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        info_v.addWidget(self.file_label)
        self.pdf_info_label = QLabel()
        self.pdf_info_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        info_v.addWidget(self.pdf_info_label)
        info_group.setLayout(info_v)
        layout.addWidget(info_group)

        # Strategy
        mode_h = QHBoxLayout()
        self.mode_group = QButtonGroup()
        self.mode_radios = {}
        for strategy in Strategy:
            radio = QRadioButton(STRATEGY_INFO[strategy].title)
            self.mode_group.addButton(radio)
            mode_h.addWidget(radio)
            radio.toggled.connect(lambda checked, s=strategy: checked and self._strategy_changed(s))
            self.mode_radios[strategy] = radio
        layout.addLayout(mode_h)

        # Settings, one page per strategy
        self.settings_group = QGroupBox()
        settings_v = QVBoxLayout()
        self.settings_stack = QStackedWidget()
        self.settings_stack.addWidget(self._build_cleanup_page())
        self.settings_stack.addWidget(self._build_lossy_page())
        self.settings_stack.addWidget(self._build_rasterize_page())
        settings_v.addWidget(self.settings_stack)
        self.settings_group.setLayout(settings_v)
        layout.addWidget(self.settings_group)

        # Output path
        out_h = QHBoxLayout()
        self.output_path = QLineEdit()
        self.output_path.setPlaceholderText("Select output location...")
        out_h.addWidget(self.output_path)
        browse_button = QPushButton("Browse")
        browse_button.clicked.connect(self._select_output_path)
        out_h.addWidget(browse_button)
        layout.addLayout(out_h)

        self.compress_button = QPushButton("Compress PDF")
        self.compress_button.clicked.connect(self._start_compression)
        self.compress_button.setEnabled(False)
        layout.addWidget(self.compress_button)

        # Progress
        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 0)  # busy indicator, the tools report no progress
        self.progress_bar.setVisible(False)
        layout.addWidget(self.progress_bar)
        self.status_label = QLabel("Select a PDF to compress.")
        layout.addWidget(self.status_label)
        self.summary_label = QLabel()
        layout.addWidget(self.summary_label)

        main.setLayout(layout)
        self.setCentralWidget(main)

        self.mode_radios[Strategy.CLEANUP].setChecked(True)

    def _build_cleanup_page(self):
        page = QWidget()
        v = QVBoxLayout()
        defaults = CleanupOptions()
        row = QHBoxLayout()
        row.addWidget(QLabel("Compression level:"))
        self.level_spin = _spin(COMPRESSION_LEVEL_RANGE, defaults.compression_level)
        row.addWidget(self.level_spin)
        v.addLayout(row)
        self.object_streams_cb = QCheckBox("Generate object streams")
        self.object_streams_cb.setChecked(defaults.generate_object_streams)
        self.recompress_flate_cb = QCheckBox("Recompress Flate streams")
        self.recompress_flate_cb.setChecked(defaults.recompress_flate)
        self.optimize_images_cb = QCheckBox("Try image optimization (may reduce quality)")
        self.optimize_images_cb.setChecked(defaults.optimize_images)
        for cb in (self.object_streams_cb, self.recompress_flate_cb, self.optimize_images_cb):
            v.addWidget(cb)
        v.addWidget(QLabel("Keeps the PDF looking identical. Best when you cannot change quality."))
        page.setLayout(v)
        return page

    def _build_lossy_page(self):
        page = QWidget()
        v = QVBoxLayout()
        row = QHBoxLayout()
        row.addWidget(QLabel("Preset:"))
        self.preset_combo = QComboBox()
        for preset in LossyPreset:
            self.preset_combo.addItem(PRESET_INFO[preset].title, preset)
        row.addWidget(self.preset_combo)
        v.addLayout(row)

        numbers = QHBoxLayout()
        numbers.addWidget(QLabel("Image sharpness:"))
        self.lossy_dpi_spin = _spin(LOSSY_DPI_RANGE, 225, " DPI")
        numbers.addWidget(self.lossy_dpi_spin)
        numbers.addWidget(QLabel("Image quality (JPEG):"))
        self.lossy_quality_spin = _spin(LOSSY_QUALITY_RANGE, 85)
        numbers.addWidget(self.lossy_quality_spin)
        v.addLayout(numbers)

        self.preset_description = QLabel()
        self.preset_description.setWordWrap(True)
        v.addWidget(self.preset_description)
        page.setLayout(v)

        self.preset_combo.setCurrentIndex(list(LossyPreset).index(LossyPreset.HIGH_QUALITY))
        self.preset_combo.currentIndexChanged.connect(self._preset_changed)
        self._preset_changed()
        return page

    def _build_rasterize_page(self):
        page = QWidget()
        v = QVBoxLayout()
        defaults = RasterizeOptions()
        row = QHBoxLayout()
        row.addWidget(QLabel("Resolution:"))
        self.raster_dpi_spin = _spin(RASTER_DPI_RANGE, defaults.dpi, " DPI")
        row.addWidget(self.raster_dpi_spin)
        row.addWidget(QLabel("Image quality (JPEG):"))
        self.raster_quality_spin = _spin(RASTER_QUALITY_RANGE, defaults.jpeg_quality)
        row.addWidget(self.raster_quality_spin)
        v.addLayout(row)
        v.addWidget(QLabel("Every page becomes a picture. Text can no longer be selected."))
        page.setLayout(v)
        return page

    # ---- State changes ----

    def _current_strategy(self):
        for strategy, radio in self.mode_radios.items():
            if radio.isChecked():
                return strategy
        return Strategy.CLEANUP

    def _strategy_changed(self, strategy):
        self.settings_stack.setCurrentIndex(list(Strategy).index(strategy))
        self.settings_group.setTitle(STRATEGY_INFO[strategy].subtitle)
        if self.input_file_path:
            self.output_path.setText(str(service.default_output_path(self.input_file_path, strategy)))

    def _preset_changed(self, *_):
        preset = self.preset_combo.currentData()
        if preset is None:
            return
        info = PRESET_INFO[preset]
        fixed = info.pdf_settings is not None
        self.lossy_dpi_spin.setEnabled(not fixed)
        self.lossy_quality_spin.setEnabled(not fixed)
        if not fixed:
            self.lossy_dpi_spin.setValue(info.default_dpi)
            self.lossy_quality_spin.setValue(info.default_quality)
        text = info.description
        if preset is LossyPreset.CUSTOM:
            text += " Recommended: 150 DPI / JPEG 75 for balance, or 225 DPI / JPEG 85 for high quality."
        self.preset_description.setText(text)

    def _current_options(self, strategy):
        if strategy is Strategy.CLEANUP:
            return CleanupOptions(
                compression_level=self.level_spin.value(),
                recompress_flate=self.recompress_flate_cb.isChecked(),
                generate_object_streams=self.object_streams_cb.isChecked(),
                optimize_images=self.optimize_images_cb.isChecked(),
            )
        if strategy is Strategy.LOSSY:
            return LossyOptions(
                preset=self.preset_combo.currentData(),
                dpi=self.lossy_dpi_spin.value(),
                jpeg_quality=self.lossy_quality_spin.value(),
            )
        return RasterizeOptions(
            dpi=self.raster_dpi_spin.value(),
            jpeg_quality=self.raster_quality_spin.value(),
        )

    def _check_dependencies(self):
        bits = []
        for name, (ok, _detail) in tools.tool_status().items():
            bits.append(f"{name}: OK" if ok else f"{name}: Missing")
        self.dependency_status.setText(" | ".join(bits))
        self.dependency_status.setStyleSheet("color: green;" if "Missing" not in self.dependency_status.text() else "color: orange;")

    def _show_resources(self):
        try:
            available_memory_gb = psutil.virtual_memory().available / (1024**3)
            self.memory_status.setText(f"Memory: {available_memory_gb:.1f} GB available")
            self.memory_status.setStyleSheet("color: green;" if available_memory_gb > 2 else ("color: orange;" if available_memory_gb > 1 else "color: red;"))
        except Exception:
            self.memory_status.setText("Memory: unknown")

    def _select_output_path(self):
        file_path, _ = QFileDialog.getSaveFileName(self, "Save Compressed PDF", self.output_path.text(), "PDF Files (*.pdf)")
        if file_path:
            self.output_path.setText(file_path)
            self.summary_label.clear()

    def _file_selected(self, file_path):
        self.input_file_path = file_path
        self.file_label.setText(f"Selected: {os.path.basename(file_path)}")
        self.summary_label.clear()

        self.pdf_info = PDFAnalyzer.get_pdf_info(file_path)
        self.original_size = self.pdf_info['size_bytes']
        info_text = []
        if self.pdf_info['pages'] > 0:
            info_text.append(f"Pages: {self.pdf_info['pages']}")
        info_text.append(f"Input size: {service.format_size(self.original_size)}")
        if self.pdf_info['is_encrypted']:
            info_text.append("Encrypted")
        elif not self.pdf_info['readable']:
            info_text.append("Could not be analyzed")
        self.pdf_info_label.setText(" | ".join(info_text))

        self.output_path.setText(str(service.default_output_path(file_path, self._current_strategy())))
        self.status_label.setText("Ready to compress.")
        self.compress_button.setEnabled(not self.pdf_info['is_encrypted'])

    def _start_compression(self):
        if not self.input_file_path:
            QMessageBox.warning(self, "Error", "Please select a PDF file first.")
            return
        if not self.output_path.text():
            QMessageBox.warning(self, "Error", "Please select an output location.")
            return

        strategy = self._current_strategy()
        options = self._current_options(strategy)

        self.progress_bar.setVisible(True)
        self.summary_label.clear()
        self.status_label.setText(f"Running {STRATEGY_INFO[strategy].title.lower()}...")
        self.compress_button.setEnabled(False)

        self.worker = CompressionWorker(self.input_file_path, self.output_path.text(), strategy, options)
        self.worker.finished.connect(self._compression_finished)
        self.worker.start()

    def _compression_finished(self, success, message):
        self.progress_bar.setVisible(False)
        self.compress_button.setEnabled(True)

        if success:
            self.status_label.setText(message)
            if self.worker and self.worker.result:
                self.summary_label.setText(self.worker.result.summary())
        else:
            self.status_label.setText("Compression failed.")
            QMessageBox.critical(self, "Compression Failed", message)

        if self.worker:
            self.worker.deleteLater()
            self.worker = None


# ------------------------- Main -------------------------

def main():
    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s - %(levelname)s - %(message)s')
    app = QApplication(sys.argv)
    window = GerasApp()
    window.show()
    sys.exit(app.exec())


if __name__ == '__main__':
    main()
