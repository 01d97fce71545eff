"""
Tests for the Gemini client wrapper.
"""

import enum

import pytest
from google.ai.generativelanguage_v1beta.types import HarmCategory, SafetyRating

from pdfchat.services.llm_service import (
    GeminiChatModel,
    GeminiClient,
    SAFETY_SETTINGS,
    _BLOCK_REASONS,
    _FINISH_REASONS,
    normalize_reason,
)

from conftest import make_response


class FinishReason(enum.IntEnum):
    FINISH_REASON_UNSPECIFIED = 0
    STOP = 1
    SAFETY = 3


@pytest.mark.parametrize("value, expected", [
    (None, None),
    ("", None),
    (0, None),
    ("STOP", "STOP"),
    ("safety", "SAFETY"),
    ("FinishReason.MAX_TOKENS", "MAX_TOKENS"),
    ("BLOCK_REASON_UNSPECIFIED", None),
    (3, "SAFETY"),
    (FinishReason.SAFETY, "SAFETY"),
    (FinishReason.FINISH_REASON_UNSPECIFIED, None),
])
def test_normalize_finish_reason(value, expected):
    assert normalize_reason(value, _FINISH_REASONS) == expected


def test_normalize_block_reason_integer():
    assert normalize_reason(1, _BLOCK_REASONS) == "SAFETY"
    assert normalize_reason(99, _BLOCK_REASONS) == "99"


def test_generate_reads_text_and_finish_reason(gemini):
    gemini.response = make_response("Paris.", finish_reason="STOP")

    result = GeminiClient().generate("User Question: capital?\nAnswer:")

    assert result.text == "Paris."
    assert result.finish_reason == "STOP"
    assert result.prompt_block_reason is None
    assert gemini.prompts == ["User Question: capital?\nAnswer:"]


def test_generate_reads_prompt_feedback(gemini):
    gemini.response = make_response(block_reason="SAFETY", candidates=False)

    result = GeminiClient().generate("bad prompt")

    assert result.text == ""
    assert result.prompt_block_reason == "SAFETY"
    assert result.finish_reason is None


def test_generate_reads_other_prompt_block_reasons(gemini):
    gemini.response = make_response(block_reason="BLOCKLIST", candidates=False)

    result = GeminiClient().generate("listed words")

    assert result.prompt_block_reason == "BLOCKLIST"


def test_generate_keeps_safety_ratings(gemini):
    ratings = [{
        "category": HarmCategory.HARM_CATEGORY_HARASSMENT,
        "probability": SafetyRating.HarmProbability.HIGH,
        "blocked": True,
    }]
    gemini.response = make_response("", finish_reason="SAFETY", safety_ratings=ratings)

    result = GeminiClient().generate("prompt")

    assert result.text == ""
    assert result.finish_reason == "SAFETY"
    assert result.prompt_block_reason is None
    assert len(result.safety_ratings) == 1


def test_generate_reads_max_tokens_stop(gemini):
    gemini.response = make_response("", finish_reason="MAX_TOKENS")

    result = GeminiClient().generate("write a very long essay")

    assert result.text == ""
    assert result.finish_reason == "MAX_TOKENS"


def test_generate_propagates_errors(gemini):
    gemini.error = ConnectionError("unreachable")

    with pytest.raises(ConnectionError):
        GeminiClient().generate("prompt")


def test_combined_output_keeps_prompt_feedback():
    model = GeminiClient().llm

    combined = model._combine_llm_outputs([None, {"prompt_feedback": {"block_reason": 1}}])

    assert combined == {"prompt_feedback": {"block_reason": 1}}
    assert model._combine_llm_outputs([{}]) == {}


def test_safety_settings_cover_required_categories():
    names = {category.name for category in SAFETY_SETTINGS}
    assert {
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    } <= names
    assert {threshold.name for threshold in SAFETY_SETTINGS.values()} == {"BLOCK_MEDIUM_AND_ABOVE"}


def test_model_is_built_lazily():
    client = GeminiClient()
    assert client._llm is None
    assert isinstance(client.llm, GeminiChatModel)
    assert client.llm.max_retries == 1
