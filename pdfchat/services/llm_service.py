"""
Gemini client used by the chat service.

Wraps ``ChatGoogleGenerativeAI`` and reduces its output to a
``GenerationResult``: the generated text plus the block/finish reasons needed
to explain an empty answer.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from langchain_core.messages import HumanMessage
from langchain_core.outputs import LLMResult
from langchain_google_genai import ChatGoogleGenerativeAI, HarmBlockThreshold, HarmCategory

from ..config import settings
from ..utils import (
    measure_time,
    log_processing_info,
    handle_processing_error
)
import logging

logger = logging.getLogger(__name__)


SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
}

# Integer values of the Gemini API enums, for SDK versions that report
# prompt feedback as plain proto dicts.
_BLOCK_REASONS = {1: "SAFETY", 2: "OTHER", 3: "BLOCKLIST", 4: "PROHIBITED_CONTENT", 5: "IMAGE_SAFETY"}
_FINISH_REASONS = {
    1: "STOP", 2: "MAX_TOKENS", 3: "SAFETY", 4: "RECITATION", 5: "OTHER",
    6: "BLOCKLIST", 7: "PROHIBITED_CONTENT", 8: "SPII", 9: "MALFORMED_FUNCTION_CALL",
}


def normalize_reason(value: Any, names: Dict[int, str]) -> Optional[str]:
    """
    Turn an enum member, enum name or proto integer into an upper-case name.

    Unspecified reasons (0, empty, ``*_UNSPECIFIED``) become None.
    """
    if value is None or value == "" or value == 0:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int) and not hasattr(value, "name"):
        return names.get(value, str(value))
    name = getattr(value, "name", None) or str(value)
    name = name.rsplit(".", 1)[-1].upper()
    for prefix in ("BLOCK_REASON_", "FINISH_REASON_"):
        if name.startswith(prefix):
            name = name[len(prefix):]
    if name.endswith("UNSPECIFIED"):
        return None
    return name


@dataclass
class GenerationResult:
    """What the chat service needs to know about one model call."""
    text: str
    prompt_block_reason: Optional[str] = None
    finish_reason: Optional[str] = None
    safety_ratings: List[Any] = field(default_factory=list)


class GeminiChatModel(ChatGoogleGenerativeAI):
    """
    ChatGoogleGenerativeAI that keeps the prompt feedback.

    ``generate()`` merges per-call ``llm_output`` dicts through
    ``_combine_llm_outputs``, which the base class answers with ``{}``. A
    prompt blocked before generation has no candidates, so its block reason
    only survives if ``prompt_feedback`` is carried over here.
    """

    def _combine_llm_outputs(self, llm_outputs: List[Optional[dict]]) -> dict:
        combined: Dict[str, Any] = {}
        for output in llm_outputs:
            if output and output.get("prompt_feedback"):
                combined["prompt_feedback"] = output["prompt_feedback"]
        return combined


class GeminiClient:
    """Thin wrapper around the Gemini chat model."""

    def __init__(self, llm: Optional[Any] = None):
        self._llm = llm

    @property
    def llm(self) -> GeminiChatModel:
        if self._llm is None:
            self._llm = self._initialize_llm()
        return self._llm

    def _initialize_llm(self) -> GeminiChatModel:
        """Initialize the language model."""
        llm = GeminiChatModel(
            model=settings.google_chat_model,
            api_key=settings.google_api_key,
            temperature=settings.google_temperature,
            top_k=settings.google_top_k,
            top_p=settings.google_top_p,
            max_output_tokens=settings.google_max_output_tokens,
            safety_settings=SAFETY_SETTINGS,
            max_retries=1,  # single attempt
        )

        log_processing_info("LLM initialized", {
            "model": settings.google_chat_model,
            "temperature": settings.google_temperature,
            "max_output_tokens": settings.google_max_output_tokens
        })

        return llm

    @measure_time
    def generate(self, prompt: str) -> GenerationResult:
        """
        Send a prompt to the model.

        Args:
            prompt: Fully built prompt

        Returns:
            GenerationResult; ``text`` is empty when the model refused or stopped early

        Raises:
            Exception: Whatever the SDK raises on transport or API errors
        """
        try:
            llm_result = self.llm.generate([[HumanMessage(content=prompt)]])
        except Exception as e:
            handle_processing_error("response_generation", e, {"prompt_length": len(prompt)})
            raise

        result = self._to_generation_result(llm_result)

        log_processing_info("Response generated", {
            "prompt_length": len(prompt),
            "answer_length": len(result.text),
            "finish_reason": result.finish_reason,
            "prompt_block_reason": result.prompt_block_reason
        })

        return result

    @staticmethod
    def _to_generation_result(llm_result: LLMResult) -> GenerationResult:
        prompt_feedback = (llm_result.llm_output or {}).get("prompt_feedback") or {}
        if not isinstance(prompt_feedback, dict):
            prompt_feedback = {"block_reason": getattr(prompt_feedback, "block_reason", None)}
        prompt_block_reason = normalize_reason(prompt_feedback.get("block_reason"), _BLOCK_REASONS)

        generations = llm_result.generations[0] if llm_result.generations else []
        if not generations:
            return GenerationResult(text="", prompt_block_reason=prompt_block_reason)

        first = generations[0]
        info = first.generation_info or {}
        return GenerationResult(
            text=first.text or "",
            prompt_block_reason=prompt_block_reason,
            finish_reason=normalize_reason(info.get("finish_reason"), _FINISH_REASONS),
            safety_ratings=info.get("safety_ratings") or [],
        )
