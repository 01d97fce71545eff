"""
PDF processing service for extracting text from PDF files.
"""

import PyPDF2
from PyPDF2.errors import PdfReadError
from io import BytesIO

from ..exceptions import ValidationError, InternalError
from ..utils import (
    measure_time,
    log_processing_info,
    handle_processing_error
)
import logging

logger = logging.getLogger(__name__)


class PDFProcessor:
    """Service for processing PDF files and extracting text."""

    @measure_time
    def extract_text(self, file_content: bytes, filename: str) -> str:
        """
        Extract the plain text of a PDF.

        Args:
            file_content: PDF file content as bytes
            filename: Name of the PDF file, used for logging only

        Returns:
            Text of all readable pages, separated by blank lines

        Raises:
            ValidationError: If the content is empty or not a readable PDF
            InternalError: If extraction fails for any other reason
        """
        if not file_content:
            logger.warning(f"Empty file content for {filename}")
            raise ValidationError("Invalid or corrupted PDF file.")

        try:
            pdf_reader = PyPDF2.PdfReader(BytesIO(file_content))
            total_pages = len(pdf_reader.pages)

            log_processing_info("PDF extraction started", {
                "filename": filename,
                "total_pages": total_pages,
                "file_size": len(file_content)
            })

            pages = []
            for page_num, page in enumerate(pdf_reader.pages):
                try:
                    page_text = page.extract_text()
                except Exception as page_error:
                    error_info = handle_processing_error(
                        "page_extraction",
                        page_error,
                        {"filename": filename, "page": page_num + 1}
                    )
                    logger.warning(f"Skipping page {page_num + 1}: {error_info}")
                    continue

                if page_text and page_text.strip():
                    pages.append(page_text)

        except PdfReadError as e:
            handle_processing_error("pdf_extraction", e, {"filename": filename, "file_size": len(file_content)})
            raise ValidationError("Invalid or corrupted PDF file.")
        except Exception as e:
            handle_processing_error("pdf_extraction", e, {"filename": filename, "file_size": len(file_content)})
            raise InternalError("Failed to parse PDF.")

        text = "\n\n".join(pages)

        log_processing_info("PDF extraction completed", {
            "filename": filename,
            "pages_with_text": len(pages),
            "total_pages": total_pages,
            "text_length": len(text)
        })

        return text
