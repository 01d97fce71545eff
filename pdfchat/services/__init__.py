"""
Services package for the PDF Chat Backend.
"""

from .pdf_processor import PDFProcessor
from .llm_service import GeminiClient, GenerationResult
from .chat_service import ChatService, ChatReply
from .history_service import HistoryService

__all__ = [
    "PDFProcessor",
    "GeminiClient",
    "GenerationResult",
    "ChatService",
    "ChatReply",
    "HistoryService"
]
