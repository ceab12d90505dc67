import logging

import fitz  # PyMuPDF

from .service import file_size_bytes


class PDFAnalyzer:
    @staticmethod
    def get_pdf_info(pdf_path):
        """Page count, size and encryption flag shown next to the selected file."""
        size = file_size_bytes(pdf_path)
        info = {
            'pages': 0,
            'size_bytes': size,
            'size_mb': size / (1024**2),
            'is_encrypted': False,
            'readable': True,
        }
        try:
            with fitz.open(pdf_path) as doc:
                info['pages'] = doc.page_count
                info['is_encrypted'] = doc.is_encrypted
        except Exception as e:
            logging.warning(f"Could not open {pdf_path} for analysis: {e}")
            info['readable'] = False
        return info
