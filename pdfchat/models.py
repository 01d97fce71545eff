"""
Pydantic models for request/response validation.
"""

from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime


class ChatRequest(BaseModel):
    """Request model for chat queries.

    Fields are left loosely typed so that a missing or non-string query is
    rejected by the chat service with a 400 rather than by FastAPI with a 422.
    """
    model_config = ConfigDict(populate_by_name=True)

    query: Any = Field(default=None, description="User's question")
    pdf_text: Any = Field(default=None, alias="pdfText", description="Extracted document text to answer from")


class ChatResponse(BaseModel):
    """Response model for chat queries."""
    reply: str = Field(..., description="Generated answer")


class UploadResponse(BaseModel):
    """Response model for PDF upload."""
    text: str = Field(..., description="Text extracted from the PDF")


class DisplayMessage(BaseModel):
    """A message as shown in the chat window. Derived, never stored as such."""
    id: str = Field(..., description="Message ID")
    text: str = Field(..., description="Message text")
    role: Literal["user", "bot", "system"] = Field(..., description="Who the message is from")
    timestamp: datetime = Field(..., description="When the interaction was recorded")
    context_used: Optional[bool] = Field(default=None, description="Whether document text was used for the reply")
    is_error: Optional[bool] = Field(default=None, description="Whether the message reports a failure")


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str = Field(..., description="Health status")
    message: str = Field(..., description="Status message")
    version: str = Field(..., description="Application version")
    timestamp: str = Field(..., description="Current timestamp")


class ErrorResponse(BaseModel):
    """Response model for errors."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(default=None, description="Detailed error information")
    status_code: int = Field(..., description="HTTP status code")
