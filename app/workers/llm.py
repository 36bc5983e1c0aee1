from __future__ import annotations

import time
from typing import Any, Awaitable, Callable, List, Optional

from pydantic_ai import Agent
from pydantic_ai.builtin_tools import UrlContextTool, WebSearchTool
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    UserPromptPart,
)
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.providers.google import GoogleProvider
from pydantic_ai.settings import ModelSettings

from app.config import Settings, get_settings
from app.exceptions import (
    CompletionError,
    ConfigurationError,
    InvalidRequestError,
    PermissionDeniedError,
    RateLimitedError,
    UnknownCompletionError,
)
from app.infra.logging_config import get_logger

logger = get_logger("llm")

DeltaCallback = Callable[[str], Awaitable[None]]

PROGRESS_LOG_EVERY = 10

_ERRORS_BY_CODE: dict[str, type[CompletionError]] = {
    "RESOURCE_EXHAUSTED": RateLimitedError,
    "PERMISSION_DENIED": PermissionDeniedError,
    "INVALID_ARGUMENT": InvalidRequestError,
}

_ERRORS_BY_HTTP_STATUS: dict[int, type[CompletionError]] = {
    429: RateLimitedError,
    403: PermissionDeniedError,
    400: InvalidRequestError,
}


def _error_class_for(exc: BaseException) -> Optional[type[CompletionError]]:
    for attr in ("code", "status", "status_code"):
        value = getattr(exc, attr, None)
        if isinstance(value, str) and value.upper() in _ERRORS_BY_CODE:
            return _ERRORS_BY_CODE[value.upper()]
        if isinstance(value, int) and value in _ERRORS_BY_HTTP_STATUS:
            return _ERRORS_BY_HTTP_STATUS[value]
    if isinstance(exc, ModelHTTPError) and exc.body is not None:
        body = str(exc.body)
        for code, error_cls in _ERRORS_BY_CODE.items():
            if code in body:
                return error_cls
    return None


def classify_provider_error(exc: BaseException) -> CompletionError:
    """
    Map a provider failure to the completion error taxonomy.

    Looks at the exception and its cause chain for a gRPC-style status name
    (RESOURCE_EXHAUSTED, ...) or the matching HTTP status.
    """
    if isinstance(exc, CompletionError):
        return exc
    if isinstance(exc, BaseExceptionGroup):
        for inner in exc.exceptions:
            classified = classify_provider_error(inner)
            if not isinstance(classified, UnknownCompletionError):
                return classified
        return UnknownCompletionError(str(exc))
    current: Optional[BaseException] = exc
    seen: set[int] = set()
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        error_cls = _error_class_for(current)
        if error_cls is not None:
            return error_cls(str(exc))
        current = current.__cause__ or current.__context__
    return UnknownCompletionError(str(exc))


def _history_to_message_list(history: List[dict[str, str]]) -> List[ModelMessage]:
    """Convert list of {role, content} to pydantic_ai ModelMessage list for message_history."""
    out: List[ModelMessage] = []
    for item in history:
        role = item.get("role", "user")
        content = item.get("content") or ""
        if role == "user":
            out.append(ModelRequest(parts=[UserPromptPart(content=content)]))
        elif role == "assistant":
            out.append(ModelResponse(parts=[TextPart(content=content)]))
        elif role == "system":
            out.append(ModelRequest(parts=[SystemPromptPart(content=content)]))
    return out


class CompletionStreamer:
    """Streams one assistant reply for a transcript plus a new prompt."""

    def __init__(
        self,
        agent: Agent,
        model_settings: Optional[ModelSettings] = None,
        system_prompt: Optional[str] = None,
    ) -> None:
        self._agent = agent
        self._model_settings = model_settings
        self._system_prompt = system_prompt

    async def stream(
        self,
        history: List[dict[str, str]],
        prompt: str,
        on_delta: DeltaCallback,
        thread_id: Optional[str] = None,
    ) -> str:
        """
        Stream the reply, awaiting on_delta once per fragment in emission order.

        Returns the exact concatenation of the fragments. A failing on_delta is
        logged and does not stop the stream. Provider failures are raised as a
        CompletionError subclass; the provider error is chained and logged.
        """
        started = time.monotonic()
        message_history = self._message_history(history)
        logger.info(
            "Starting completion stream for thread %s with %d previous messages",
            thread_id,
            len(history),
        )

        full_response = ""
        fragment_count = 0
        try:
            async with self._agent.run_stream(
                prompt,
                message_history=message_history,
                model_settings=self._model_settings,
            ) as result:
                async for fragment in result.stream_text(
                    delta=True, debounce_by=None
                ):
                    if not fragment:
                        continue
                    full_response += fragment
                    fragment_count += 1
                    await self._deliver(on_delta, fragment, thread_id)
                    if fragment_count % PROGRESS_LOG_EVERY == 0:
                        logger.debug(
                            "Streaming progress - Thread: %s, Fragments: %d, Length: %d",
                            thread_id,
                            fragment_count,
                            len(full_response),
                        )
        except Exception as e:
            duration_ms = int((time.monotonic() - started) * 1000)
            logger.error(
                "Completion stream failed - Thread: %s, Duration: %dms, Error: %s",
                thread_id,
                duration_ms,
                e,
                exc_info=True,
            )
            raise classify_provider_error(e) from e

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "Stream completed - Thread: %s, Duration: %dms, Response length: %d, Fragments: %d",
            thread_id,
            duration_ms,
            len(full_response),
            fragment_count,
        )
        return full_response

    def _message_history(self, history: List[dict[str, str]]) -> List[ModelMessage]:
        messages = _history_to_message_list(history)
        if self._system_prompt:
            system_message = ModelRequest(
                parts=[SystemPromptPart(content=self._system_prompt)]
            )
            messages = [system_message] + messages
        return messages

    @staticmethod
    async def _deliver(
        on_delta: DeltaCallback, fragment: str, thread_id: Optional[str]
    ) -> None:
        try:
            await on_delta(fragment)
        except Exception as e:
            logger.warning(
                "Delta callback failed for thread %s, continuing stream: %s",
                thread_id,
                e,
            )


def build_completion_streamer_from_env(
    settings: Optional[Settings] = None,
) -> CompletionStreamer:
    """Build the single Vertex AI backed streamer used for the life of the process."""
    settings = settings or get_settings()
    if not settings.gcp_project_id or not settings.gcp_location:
        raise ConfigurationError("Missing required Vertex AI configuration")
    logger.info(
        "LLM config: model=%s, project=%s, location=%s, tools=%s",
        settings.vertex_ai_model,
        settings.gcp_project_id,
        settings.gcp_location,
        "on" if settings.llm_enable_tools else "off",
    )

    provider = GoogleProvider(
        vertexai=True,
        project=settings.gcp_project_id,
        location=settings.gcp_location,
    )
    model = GoogleModel(settings.vertex_ai_model, provider=provider)
    builtin_tools: List[Any] = (
        [UrlContextTool(), WebSearchTool()] if settings.llm_enable_tools else []
    )
    agent = Agent(model, builtin_tools=builtin_tools)
    model_settings = ModelSettings(
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_output_tokens,
    )
    logger.info(
        "Vertex AI model initialized: %s in %s",
        settings.vertex_ai_model,
        settings.gcp_location,
    )
    return CompletionStreamer(
        agent,
        model_settings=model_settings,
        system_prompt=settings.llm_system_prompt,
    )
