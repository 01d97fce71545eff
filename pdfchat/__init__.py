"""
PDF Chat Backend Application

Ask Gemini questions about a PDF and keep a per-user chat history.

Features:
- In-memory PDF text extraction (no file storage)
- Google Gemini answers, optionally grounded in the uploaded document
- Clerk session authentication
- Chat turns persisted per user and replayed as chat history
- Structured logging and consistent error responses
"""

__version__ = "1.0.0"
__description__ = "Chat with your PDFs using Google Gemini"
