#!/usr/bin/env python3
"""
Bootstrap script for the Geras standalone app.
This script handles the application launch and initialization.
"""

import os
import sys
import logging
from pathlib import Path

import psutil

# Add the current directory to Python path for imports
if hasattr(sys, '_MEIPASS'):
    # When running as PyInstaller bundle
    sys.path.insert(0, sys._MEIPASS)


def setup_logging():
    """Set up logging to file and console"""
    log_file = Path.home() / 'geras_log.txt'

    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout)
        ]
    )

    logging.info('Starting Geras')
    logging.info(f'Python version: {sys.version}')
    logging.info(f'Current working directory: {os.getcwd()}')


def init_qt_plugins():
    """Initialize Qt plugins and paths"""
    if getattr(sys, 'frozen', False):
        # Running in a bundle
        bundle_dir = os.path.dirname(sys.executable)
        logging.info(f'Bundle directory: {bundle_dir}')

        os.environ['QT_PLUGIN_PATH'] = os.path.join(bundle_dir, 'plugins')
        os.environ['QT_QPA_PLATFORM_PLUGIN_PATH'] = os.path.join(bundle_dir, 'plugins', 'platforms')

        logging.info(f'QT_PLUGIN_PATH: {os.environ.get("QT_PLUGIN_PATH")}')
        logging.info(f'QT_QPA_PLATFORM_PLUGIN_PATH: {os.environ.get("QT_QPA_PLATFORM_PLUGIN_PATH")}')


def check_tools():
    """Log where qpdf and Ghostscript resolve; the window reports the same."""
    from geras import tools

    logging.info(f'Vendor directory: {tools.vendor_root()}')
    for name, (ok, detail) in tools.tool_status().items():
        if ok:
            logging.info(f'{name}: {detail}')
        else:
            logging.warning(f'{name} unavailable: {detail}')

    available_memory = psutil.virtual_memory().available / (1024**3)
    logging.info(f'Available memory: {available_memory:.1f}GB')
    if available_memory < 1:
        logging.warning('Low memory detected. Large PDFs may be killed mid-run.')


def main():
    try:
        setup_logging()
        init_qt_plugins()
        check_tools()

        from PyQt6.QtWidgets import QApplication
        from geras.app import GerasApp

        logging.info('Creating application...')
        app = QApplication(sys.argv)
        window = GerasApp()
        window.show()

        logging.info('Starting event loop...')
        sys.exit(app.exec())
    except Exception as e:
        logging.error(f'Fatal error: {str(e)}')
        raise


if __name__ == '__main__':
    main()
