"""
Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``main.py`` turns them into JSON error responses.
"""

from fastapi import status


class ChatbotError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class UnauthorizedError(ChatbotError):
    """No resolvable caller identity."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ValidationError(ChatbotError):
    """Bad input, unsupported upload, or a model-side safety block."""

    status_code = status.HTTP_400_BAD_REQUEST


class InternalError(ChatbotError):
    """Unexpected failure. The message is safe to show; details go to the log."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
