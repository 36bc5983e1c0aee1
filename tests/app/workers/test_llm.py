"""Tests for the completion streamer and provider error classification."""

import pytest
from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.messages import (
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    UserPromptPart,
)
from pydantic_ai.models.function import AgentInfo, FunctionModel

from app.exceptions import (
    CompletionError,
    InvalidRequestError,
    PermissionDeniedError,
    RateLimitedError,
    UnknownCompletionError,
)
from app.workers.llm import (
    CompletionStreamer,
    _history_to_message_list,
    classify_provider_error,
)


def _streamer(stream_function, system_prompt=None) -> CompletionStreamer:
    agent = Agent(FunctionModel(stream_function=stream_function))
    return CompletionStreamer(agent, system_prompt=system_prompt)


class _StatusError(Exception):
    """Mimics a provider SDK error carrying a status name."""

    def __init__(self, message, status):
        super().__init__(message)
        self.status = status


@pytest.mark.asyncio
async def test_stream_delivers_fragments_in_order_and_returns_concatenation():
    async def stream_function(messages, info: AgentInfo):
        for fragment in ["The ", "answer ", "is ", "42."]:
            yield fragment

    delivered = []

    async def on_delta(fragment):
        delivered.append(fragment)

    result = await _streamer(stream_function).stream([], "What is it?", on_delta)

    assert result == "The answer is 42."
    assert "".join(delivered) == result
    assert delivered == ["The ", "answer ", "is ", "42."]


@pytest.mark.asyncio
async def test_stream_sends_history_and_system_prompt():
    seen = {}

    async def stream_function(messages, info: AgentInfo):
        seen["parts"] = [part for message in messages for part in message.parts]
        yield "ok"

    async def on_delta(fragment):
        pass

    history = [
        {"role": "user", "content": "earlier question"},
        {"role": "assistant", "content": "earlier answer"},
    ]
    await _streamer(stream_function, system_prompt="Be brief.").stream(
        history, "next question", on_delta
    )

    parts = seen["parts"]
    assert isinstance(parts[0], SystemPromptPart)
    assert parts[0].content == "Be brief."
    user_prompts = [p.content for p in parts if isinstance(p, UserPromptPart)]
    assert user_prompts == ["earlier question", "next question"]
    assert any(isinstance(p, TextPart) and p.content == "earlier answer" for p in parts)


@pytest.mark.asyncio
async def test_failing_delta_callback_does_not_abort_stream():
    async def stream_function(messages, info: AgentInfo):
        yield "a"
        yield "b"
        yield "c"

    calls = []

    async def on_delta(fragment):
        calls.append(fragment)
        raise RuntimeError("edit rate limited")

    result = await _streamer(stream_function).stream([], "hi", on_delta)

    assert result == "abc"
    assert calls == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_provider_failure_is_classified():
    async def stream_function(messages, info: AgentInfo):
        raise ModelHTTPError(
            status_code=429,
            model_name="gemini-1.5-pro",
            body={"error": {"status": "RESOURCE_EXHAUSTED"}},
        )
        yield ""  # pragma: no cover

    async def on_delta(fragment):
        pass

    with pytest.raises(RateLimitedError) as exc_info:
        await _streamer(stream_function).stream([], "hi", on_delta)
    assert exc_info.value.user_message == "Rate limit exceeded. Please try again in a moment."


def test_history_to_message_list():
    messages = _history_to_message_list(
        [
            {"role": "user", "content": "q"},
            {"role": "assistant", "content": "a"},
        ]
    )
    assert isinstance(messages[0], ModelRequest)
    assert isinstance(messages[1], ModelResponse)
    assert messages[1].parts[0].content == "a"


@pytest.mark.parametrize(
    "status_code, expected",
    [
        (429, RateLimitedError),
        (403, PermissionDeniedError),
        (400, InvalidRequestError),
        (500, UnknownCompletionError),
    ],
)
def test_classify_http_status(status_code, expected):
    error = ModelHTTPError(status_code=status_code, model_name="gemini", body=None)
    assert type(classify_provider_error(error)) is expected


@pytest.mark.parametrize(
    "status, expected",
    [
        ("RESOURCE_EXHAUSTED", RateLimitedError),
        ("PERMISSION_DENIED", PermissionDeniedError),
        ("INVALID_ARGUMENT", InvalidRequestError),
        ("INTERNAL", UnknownCompletionError),
    ],
)
def test_classify_status_name(status, expected):
    assert type(classify_provider_error(_StatusError("boom", status))) is expected


def test_classify_looks_at_cause_chain():
    try:
        try:
            raise _StatusError("quota", "RESOURCE_EXHAUSTED")
        except _StatusError as inner:
            raise RuntimeError("stream failed") from inner
    except RuntimeError as outer:
        classified = classify_provider_error(outer)
    assert isinstance(classified, RateLimitedError)


def test_classify_unknown_keeps_user_message_generic():
    classified = classify_provider_error(ValueError("secret provider detail"))
    assert isinstance(classified, UnknownCompletionError)
    assert classified.user_message == "Failed to generate AI response. Please try again."
    assert "secret" not in classified.user_message


def test_classify_passes_completion_errors_through():
    error = PermissionDeniedError("denied")
    assert classify_provider_error(error) is error
    assert isinstance(error, CompletionError)
