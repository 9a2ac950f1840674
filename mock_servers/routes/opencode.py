from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request, status

from mock_servers.config import OpenCodeMockSettings
from mock_servers.core.logging_config import get_logger
from mock_servers.dependencies import get_session_id, get_session_store, get_settings
from mock_servers.schemas.session import (
    MessageCreate,
    Session,
    SessionCreate,
    SessionMessage,
    SessionUpdate,
)
from mock_servers.services.session_store import SessionStore

router = APIRouter()
logger = get_logger(__name__)

MOCK_PROJECT_ID = "proj-1"
MOCK_PROJECT_NAME = "Test Project"


async def read_json_body(request: Request) -> Any:
    """
    Decode the request body, treating an empty body as ``{}``.

    Malformed JSON is not caught here; it surfaces as a 500 with the
    decoder's message, like any other unexpected failure.
    """
    if not await request.body():
        return {}
    body = await request.json()
    return body if isinstance(body, dict) else {}


@router.api_route("/global/health", methods=["GET", "POST", "PUT", "DELETE"])
async def health_check():
    return {"status": "ok"}


@router.get("/session", response_model=List[Session])
async def list_sessions(store: SessionStore = Depends(get_session_store)):
    return store.list_sessions()


@router.post("/session", response_model=Session, status_code=status.HTTP_201_CREATED)
async def create_session(request: Request, store: SessionStore = Depends(get_session_store)):
    """Create an idle session; the title defaults to "New Session"."""
    payload = SessionCreate.model_validate(await read_json_body(request))
    return store.create_session(title=payload.title, parent_id=payload.parent_id)


@router.get("/session/{session_id}", response_model=Session)
async def get_session(
    session_id: str = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
):
    return store.get_session(session_id)


@router.put("/session/{session_id}", response_model=Session)
async def update_session(
    request: Request,
    session_id: str = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
):
    """
    Rename and/or archive a session.

    The existence check runs before the body is read so an unknown id is
    always a 404. Archiving is one-way.
    """
    store.get_session(session_id)

    payload = SessionUpdate.model_validate(await read_json_body(request))
    archived_at = payload.time.archived if payload.time else None

    # Re-checked inside the store: the session may have gone while the body was read
    return store.update_session(session_id, title=payload.title, archived_at=archived_at)


@router.delete("/session/{session_id}", response_model=bool)
async def delete_session(
    session_id: str = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
):
    """Delete a session and its messages. Unknown ids also answer ``true``."""
    store.delete_session(session_id)
    return True


@router.get("/session/{session_id}/message", response_model=List[SessionMessage])
async def list_messages(
    session_id: str = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
):
    return store.list_messages(session_id)


@router.post(
    "/session/{session_id}/message",
    response_model=SessionMessage,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    request: Request,
    session_id: str = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
):
    """
    Post a user message.

    The mock assistant reply is stored alongside it but only the user
    message is returned; clients see the reply by re-fetching the list.
    """
    payload = MessageCreate.model_validate(await read_json_body(request))
    return store.append_exchange(session_id, payload.content)


@router.get("/config")
async def get_config():
    return {"provider": {"type": "mock"}}


@router.get("/project")
async def list_projects(settings: OpenCodeMockSettings = Depends(get_settings)) -> List[Dict[str, str]]:
    return [
        {
            "id": MOCK_PROJECT_ID,
            "name": MOCK_PROJECT_NAME,
            "worktree": settings.WORKING_DIRECTORY,
        }
    ]


@router.get("/sessionStatus")
async def get_session_status(store: SessionStore = Depends(get_session_store)) -> Dict[str, str]:
    return store.status_map()
