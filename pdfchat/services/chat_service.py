"""
Chat service: turns a user question (and optional document text) into a
Gemini answer and records the turn.
"""

from dataclasses import dataclass
from typing import Any, Optional
from sqlalchemy.orm import Session

from .db_repositories import ChatInteractionRepository
from .llm_service import GeminiClient, GenerationResult
from ..config import settings
from ..exceptions import ChatbotError, InternalError, UnauthorizedError, ValidationError
from ..utils import has_document_context, log_processing_info, handle_processing_error
import logging

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n[...PDF text truncated due to length...]"
ERROR_SENTINEL_PREFIX = "SYSTEM ERROR: "

DOCUMENT_PROMPT = """
Based on the following document text, please answer the user's question.
If the answer is not found in the document, state that explicitly.
Do not make up information not present in the document if the question implies it should come from the document.

Document Text:
---
{document_text}
---

User Question: {query}

Answer:
"""


def truncate_document_text(document_text: str, max_length: int) -> str:
    """Cut the text to ``max_length`` characters, marking the cut."""
    if len(document_text) > max_length:
        return document_text[:max_length] + TRUNCATION_MARKER
    return document_text


def build_prompt(query: str, document_text: Optional[str] = None, max_length: Optional[int] = None) -> str:
    """
    Build the prompt sent to the model.

    Args:
        query: The user's question
        document_text: Extracted document text, if any
        max_length: Maximum number of document characters to embed

    Returns:
        The document-grounded prompt when document text is present, else the bare question form
    """
    if not has_document_context(document_text):
        return f"User Question: {query}\nAnswer:"

    if max_length is None:
        max_length = settings.max_pdf_text_length
    return DOCUMENT_PROMPT.format(
        document_text=truncate_document_text(document_text, max_length),
        query=query,
    ).strip()


def interpret_result(result: GenerationResult) -> str:
    """
    Return the generated text, or raise the error that explains why there is none.

    Raises:
        ValidationError: The prompt or the response was blocked, or generation stopped early
        InternalError: The model returned nothing and gave no reason
    """
    if result.text:
        return result.text

    message = None
    if result.prompt_block_reason == "SAFETY":
        logger.warning("Gemini: prompt blocked due to SAFETY (prompt feedback)")
        message = "Your query was blocked due to safety concerns. Please rephrase."
    elif result.prompt_block_reason:
        logger.warning(f"Gemini: prompt processing issue. Reason: {result.prompt_block_reason}")
        message = f"There was an issue with the prompt. Reason: {result.prompt_block_reason}."

    if result.finish_reason == "SAFETY":
        logger.warning(f"Gemini: response blocked due to SAFETY. Ratings: {result.safety_ratings}")
        message = "The generated response was blocked due to safety concerns. Please try a different query."
    elif result.finish_reason and result.finish_reason != "STOP":
        logger.warning(f"Gemini: response generation stopped. Reason: {result.finish_reason}")
        message = (
            f"Response generation incomplete. Reason: {result.finish_reason}. "
            "Try a shorter query or PDF."
        )

    if message is None:
        logger.warning("Gemini returned an empty text response with no block or finish reason")
        raise InternalError("I received an empty response from the AI. Could you try rephrasing?")
    raise ValidationError(message)


@dataclass
class ChatReply:
    """Outcome of one chat turn.

    ``reply`` is what the caller gets; ``stored`` only says whether the turn
    made it to the database, and never changes the reply.
    """
    reply: str
    context_used: bool
    stored: bool


class ChatService:
    """Service for answering chat queries and recording them."""

    def __init__(self, client: Optional[GeminiClient] = None,
                 repository: Optional[ChatInteractionRepository] = None):
        self.client = client or GeminiClient()
        self.repository = repository or ChatInteractionRepository()

    def handle_chat(self, db: Session, user_id: Optional[str], query: Any,
                    document_text: Any = None, email: Optional[str] = None) -> ChatReply:
        """
        Answer a question for an authenticated caller.

        Args:
            db: Database session
            user_id: Caller identity, None when there is no session
            query: The question as received
            document_text: Optional extracted document text to answer from
            email: Caller email, stored on first write

        Returns:
            ChatReply with the generated text

        Raises:
            UnauthorizedError: No caller identity
            ValidationError: Empty query or a model-side block
            InternalError: Anything else
        """
        if not user_id:
            raise UnauthorizedError("Unauthorized: You must be logged in to chat.")

        try:
            if not isinstance(query, str) or query.strip() == "":
                raise ValidationError("Query is required and must be a non-empty string.")

            context_used = has_document_context(document_text)
            prompt = build_prompt(query, document_text if context_used else None)

            log_processing_info("Chat query started", {
                "user_id": user_id,
                "query_length": len(query),
                "context_used": context_used,
                "document_length": len(document_text) if context_used else 0
            })

            reply = interpret_result(self.client.generate(prompt))

        except ChatbotError:
            raise
        except Exception as e:
            handle_processing_error("chat_query", e, {"user_id": user_id})
            self._store_error(db, user_id, query, e, email)
            raise InternalError("An unexpected error occurred while processing your chat request.")

        stored = self._store(db, user_id=user_id, user_query=query, bot_response=reply,
                             pdf_context_used=context_used, email=email)

        log_processing_info("Chat query completed", {
            "user_id": user_id,
            "answer_length": len(reply),
            "stored": stored
        })

        return ChatReply(reply=reply, context_used=context_used, stored=stored)

    def _store(self, db: Session, **fields) -> bool:
        try:
            self.repository.add(db, **fields)
            return True
        except Exception as e:
            logger.error(f"Failed to persist chat interaction: {e}")
            return False

    def _store_error(self, db: Session, user_id: str, query: str, error: Exception,
                     email: Optional[str]) -> bool:
        # Only reached after the query passed validation.
        return self._store(
            db,
            user_id=user_id,
            user_query=query,
            bot_response=f"{ERROR_SENTINEL_PREFIX}{error}",
            pdf_context_used=False,
            is_error=True,
            email=email,
        )
