from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional, Union

# Character-count heuristic; integral values stay integers on the wire
TokenCount = Union[int, float]


class ChatMessage(BaseModel):
    """One entry of an OpenAI-style ``messages`` array."""
    role: str = Field(..., description="system, user or assistant")
    content: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class ChatCompletionRequest(BaseModel):
    """
    Body of ``POST /v1/chat/completions``.

    Tool fields are accepted so real clients can send them, but the mock
    never acts on them.
    """
    model: Optional[str] = None
    messages: List[ChatMessage]
    stream: Optional[bool] = False
    tools: Optional[List[Any]] = None
    tool_choice: Optional[Any] = None

    model_config = ConfigDict(extra="allow")


class AssistantMessage(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str


class CompletionChoice(BaseModel):
    index: int = 0
    message: AssistantMessage
    finish_reason: str = "stop"


class CompletionUsage(BaseModel):
    prompt_tokens: TokenCount
    completion_tokens: TokenCount
    total_tokens: TokenCount


class ChatCompletion(BaseModel):
    id: str
    object: Literal["chat.completion"] = "chat.completion"
    created: int
    model: Optional[str] = None
    choices: List[CompletionChoice]
    usage: CompletionUsage


class ChunkChoice(BaseModel):
    index: int = 0
    # {"role": ...}, {"content": ...} or {} on the stop frame
    delta: Dict[str, str] = Field(default_factory=dict)
    finish_reason: Optional[str] = None


class ChatCompletionChunk(BaseModel):
    id: str
    object: Literal["chat.completion.chunk"] = "chat.completion.chunk"
    created: int
    model: Optional[str] = None
    choices: List[ChunkChoice]


class ModelCard(BaseModel):
    id: str
    object: Literal["model"] = "model"
    created: int
    owned_by: str = "mock"


class ModelList(BaseModel):
    object: Literal["list"] = "list"
    data: List[ModelCard]
