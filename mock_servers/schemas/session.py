from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer
from typing import Any, List, Literal, Optional

SessionStatus = Literal["idle", "archived"]


def loose_text(value: Any) -> Optional[str]:
    """
    Read a client-supplied text field leniently.

    Numbers are stringified; any other non-string value counts as absent.
    """
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def loose_timestamp(value: Any) -> Optional[int]:
    """Epoch milliseconds from a number; anything else counts as absent."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    return None


class SessionTime(BaseModel):
    """Epoch-millisecond timestamps of a session."""
    created: int
    archived: Optional[int] = None

    @model_serializer(mode="wrap")
    def _omit_unarchived(self, handler):
        # Clients test for the key's presence, not for null
        data = handler(self)
        if data.get("archived") is None:
            data.pop("archived", None)
        return data


class SessionPath(BaseModel):
    cwd: str


class Session(BaseModel):
    """
    A conversational context owned by the session store.

    Mutated in place by updates; ``status`` only ever moves from
    ``idle`` to ``archived``.
    """
    id: str
    title: str
    status: SessionStatus = "idle"
    time: SessionTime
    path: SessionPath
    parent_id: Optional[str] = Field(default=None, alias="parentID")

    model_config = ConfigDict(populate_by_name=True)


class SessionCreate(BaseModel):
    title: Optional[str] = None
    parent_id: Optional[str] = Field(default=None, alias="parentID")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    coerce_text_fields = field_validator("title", "parent_id", mode="before")(loose_text)


class SessionTimeUpdate(BaseModel):
    archived: Optional[int] = None

    model_config = ConfigDict(extra="allow")

    coerce_archived = field_validator("archived", mode="before")(loose_timestamp)


class SessionUpdate(BaseModel):
    """Only the title and the archive timestamp are mutable."""
    title: Optional[str] = None
    time: Optional[SessionTimeUpdate] = None

    model_config = ConfigDict(extra="allow")

    coerce_title = field_validator("title", mode="before")(loose_text)

    @field_validator("time", mode="before")
    @classmethod
    def ignore_non_object_time(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None


class MessagePart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class MessageTime(BaseModel):
    created: int


class SessionMessage(BaseModel):
    id: str
    session_id: str = Field(..., alias="sessionID")
    role: Literal["user", "assistant"]
    parts: List[MessagePart]
    time: MessageTime

    model_config = ConfigDict(populate_by_name=True)


class MessageCreate(BaseModel):
    content: Optional[str] = None

    model_config = ConfigDict(extra="allow")

    coerce_content = field_validator("content", mode="before")(loose_text)
