"""
Utility functions for the PDF Chat Backend.
"""

import time
import functools
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import logging

from .config import settings

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def has_document_context(document_text: Any) -> bool:
    """True when non-blank document text was supplied."""
    return isinstance(document_text, str) and document_text.strip() != ""


def format_timestamp() -> str:
    """Get current timestamp in ISO format."""
    return utcnow().isoformat()


def validate_file_type(filename: Optional[str], content_type: Optional[str]) -> bool:
    """Validate that an upload is a PDF, by content type first and extension second."""
    if content_type:
        return content_type == "application/pdf"
    return bool(filename) and filename.lower().endswith(".pdf")


def validate_file_size(file_size: int) -> bool:
    """Validate if the file size is within limits."""
    max_size_bytes = settings.max_file_size_mb * 1024 * 1024
    return file_size <= max_size_bytes


def measure_time(func):
    """Decorator to measure function execution time."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        result = func(*args, **kwargs)
        end_time = time.time()
        execution_time = end_time - start_time

        logger.info(f"{func.__name__} executed in {execution_time:.2f} seconds")
        return result
    return wrapper


def log_processing_info(operation: str, details: Dict[str, Any]) -> None:
    """Log processing information."""
    logger.info(f"{operation}: {details}")


def handle_processing_error(operation: str, error: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
    """Handle and log processing errors."""
    error_info = {
        'operation': operation,
        'error_type': type(error).__name__,
        'error_message': str(error),
        'timestamp': format_timestamp()
    }

    if context:
        error_info.update(context)

    logger.error(f"Processing error: {error_info}")
    return error_info
