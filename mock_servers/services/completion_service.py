"""
CompletionService - deterministic stand-in for an OpenAI chat completion

Reply synthesis:
- The reply echoes the most recent user message, cut to 100 characters
- Token usage is a character-count heuristic (len / 4), not tokenization

Streaming:
- The whole stream is planned up front as a schedule of (offset, delta)
  entries measured from stream start
- One monotonic clock drives the schedule, so frames can never overtake
  each other even when individual sleeps overshoot
"""

import asyncio
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Optional, Sequence

from mock_servers.core.logging_config import get_logger
from mock_servers.mock_utils import epoch_seconds, generate_response_id, mock_reply
from mock_servers.schemas.chat import (
    AssistantMessage,
    ChatCompletion,
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatMessage,
    ChunkChoice,
    CompletionChoice,
    CompletionUsage,
    TokenCount,
)

logger = get_logger(__name__)

FALLBACK_USER_CONTENT = "Hello"
REPLY_PREVIEW_CHARS = 100
CHARS_PER_TOKEN = 4
STREAM_DONE_SENTINEL = "[DONE]"


@dataclass(frozen=True)
class ScheduledFrame:
    """One planned stream frame, ``offset`` seconds after stream start."""
    offset: float
    delta: Dict[str, str] = field(default_factory=dict)
    finish_reason: Optional[str] = None


def last_user_content(messages: Sequence[ChatMessage]) -> str:
    """Content of the most recent user message, or the fallback greeting."""
    for message in reversed(messages):
        if message.role == "user":
            return message.content or FALLBACK_USER_CONTENT
    return FALLBACK_USER_CONTENT


def synthesize_reply(user_content: str) -> str:
    preview = user_content[:REPLY_PREVIEW_CHARS]
    if len(user_content) > REPLY_PREVIEW_CHARS:
        preview += "..."
    return mock_reply(preview)


def estimate_tokens(text: str) -> TokenCount:
    estimate = len(text) / CHARS_PER_TOKEN
    return int(estimate) if estimate.is_integer() else estimate


def build_stream_schedule(
    reply: str,
    word_delay: float,
    finish_delay: float,
) -> List[ScheduledFrame]:
    """
    Plan the frames of a streamed reply.

    Layout for a reply of W words (split on single spaces):
        offset 0                         role announcement
        offset word_delay * (n - 1)      word n, with a trailing space
        offset word_delay * W + finish   empty delta with finish_reason "stop"

    The ``[DONE]`` sentinel is not part of the schedule; it follows the stop
    frame immediately.
    """
    schedule = [ScheduledFrame(offset=0.0, delta={"role": "assistant"})]

    words = reply.split(" ")
    for position, word in enumerate(words):
        schedule.append(
            ScheduledFrame(offset=word_delay * position, delta={"content": word + " "})
        )

    schedule.append(
        ScheduledFrame(offset=word_delay * len(words) + finish_delay, finish_reason="stop")
    )
    return schedule


def format_sse(data: str) -> str:
    """Frame one payload as a server-sent event."""
    return f"data: {data}\n\n"


class CompletionService:
    """Builds completion bodies and event streams for the LLM mock."""

    def __init__(self, word_delay_ms: int = 50, finish_delay_ms: int = 100):
        self.word_delay = word_delay_ms / 1000
        self.finish_delay = finish_delay_ms / 1000

    def create_completion(self, request: ChatCompletionRequest) -> ChatCompletion:
        user_content = last_user_content(request.messages)
        reply = synthesize_reply(user_content)

        prompt_tokens = estimate_tokens(user_content)
        completion_tokens = estimate_tokens(reply)

        completion = ChatCompletion(
            id=generate_response_id(),
            created=epoch_seconds(),
            model=request.model,
            choices=[CompletionChoice(message=AssistantMessage(content=reply))],
            usage=CompletionUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=estimate_tokens(user_content + reply),
            ),
        )

        logger.info(
            "completion_created",
            response_id=completion.id,
            model=request.model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
        )
        return completion

    async def stream_completion(
        self,
        request: ChatCompletionRequest,
        correlation_id: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """
        Yield the SSE frames of a streamed completion, paced by the schedule.

        The stream starts when the first frame is requested. Each frame is
        released once its offset has elapsed on the event loop's monotonic
        clock.
        """
        # The request context is gone by the time the last frame is sent
        log = logger.bind(correlation_id=correlation_id) if correlation_id else logger

        reply = synthesize_reply(last_user_content(request.messages))
        schedule = build_stream_schedule(reply, self.word_delay, self.finish_delay)
        response_id = generate_response_id()

        loop = asyncio.get_running_loop()
        started_at = loop.time()

        for frame in schedule:
            remaining = started_at + frame.offset - loop.time()
            if remaining > 0:
                await asyncio.sleep(remaining)

            chunk = ChatCompletionChunk(
                id=response_id,
                created=epoch_seconds(),
                model=request.model,
                choices=[ChunkChoice(delta=frame.delta, finish_reason=frame.finish_reason)],
            )
            yield format_sse(chunk.model_dump_json())

        yield format_sse(STREAM_DONE_SENTINEL)

        log.info(
            "completion_stream_finished",
            response_id=response_id,
            model=request.model,
            frames=len(schedule) + 1,
            duration_ms=round((loop.time() - started_at) * 1000, 2),
        )
