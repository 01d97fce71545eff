"""
FastAPI application for the PDF Chat Backend.
"""

from typing import List, Optional
from fastapi import FastAPI, File, UploadFile, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session as OrmSession
import logging

from .config import settings, validate_required_settings
from .models import ChatRequest, ChatResponse, UploadResponse, DisplayMessage, HealthResponse, ErrorResponse
from .services import ChatService, HistoryService, PDFProcessor
from .db import get_db, engine
from .models_db import Base
from .auth import get_optional_user, ClerkUser
from .exceptions import ChatbotError, InternalError, ValidationError
from .utils import format_timestamp, validate_file_type, validate_file_size

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Validate required settings on startup
try:
    validate_required_settings()
except ValueError as e:
    logger.error(f"Configuration validation failed: {e}")
    raise

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Chat with Gemini about your PDFs, with per-user chat history",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,  # session cookie
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize services
chat_service = ChatService()
history_service = HistoryService()
pdf_processor = PDFProcessor()


def get_chat_service() -> ChatService:
    return chat_service


def get_history_service() -> HistoryService:
    return history_service


def get_pdf_processor() -> PDFProcessor:
    return pdf_processor


def _error_response(status_code: int, error: str, detail: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=detail, status_code=status_code).model_dump()
    )


@app.on_event("startup")
def on_startup_create_tables():
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured.")
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")


@app.exception_handler(ChatbotError)
async def chatbot_error_handler(request: Request, exc: ChatbotError):
    """Render service errors. Their messages are written to be shown to users."""
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return _error_response(400, "Malformed request body.", str(exc.errors()) if settings.debug else None)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception(f"Unhandled exception: {str(exc)}")
    return _error_response(
        500,
        "Internal server error",
        str(exc) if settings.debug else "An unexpected error occurred"
    )


@app.get("/", response_model=dict)
async def root():
    """Root endpoint."""
    return {
        "message": "PDF Chat API is running",
        "version": settings.app_version,
        "timestamp": format_timestamp()
    }


@app.get("/health", response_model=HealthResponse)
def health_check(db: OrmSession = Depends(get_db)):
    """Health check including a database ping."""
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        raise InternalError("Health check failed")

    return HealthResponse(
        status="healthy",
        message="Service health check completed",
        version=settings.app_version,
        timestamp=format_timestamp()
    )


@app.post("/api/chat", response_model=ChatResponse)
def chat(
    request: ChatRequest,
    current_user: Optional[ClerkUser] = Depends(get_optional_user),
    db: OrmSession = Depends(get_db),
    service: ChatService = Depends(get_chat_service),
):
    """Answer a question, optionally from previously extracted PDF text."""
    result = service.handle_chat(
        db,
        user_id=current_user.user_id if current_user else None,
        query=request.query,
        document_text=request.pdf_text,
        email=current_user.email if current_user else None,
    )
    if not result.stored:
        logger.warning("Chat reply returned without being stored")
    return ChatResponse(reply=result.reply)


@app.get("/api/chat-history", response_model=List[DisplayMessage])
def chat_history(
    current_user: Optional[ClerkUser] = Depends(get_optional_user),
    db: OrmSession = Depends(get_db),
    service: HistoryService = Depends(get_history_service),
):
    """The caller's chat turns, oldest first, as user/bot message pairs."""
    return service.get_history(db, current_user.user_id if current_user else None)


@app.post("/api/upload-pdf", response_model=UploadResponse)
async def upload_pdf(
    pdf: Optional[UploadFile] = File(None),
    processor: PDFProcessor = Depends(get_pdf_processor),
):
    """
    Extract the text of an uploaded PDF.

    The file is processed in memory and never stored.
    """
    if pdf is None:
        raise ValidationError("No PDF file provided.")

    if not validate_file_type(pdf.filename, pdf.content_type):
        raise ValidationError("Invalid file type. Only PDF is allowed.")

    content = await pdf.read()

    if not validate_file_size(len(content)):
        file_size_mb = len(content) / (1024 * 1024)
        raise ValidationError(
            f"File {pdf.filename} is too large: {file_size_mb:.1f}MB. Maximum size is {settings.max_file_size_mb}MB."
        )

    return UploadResponse(text=processor.extract_text(content, pdf.filename or "upload.pdf"))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "pdfchat.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
