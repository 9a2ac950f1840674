from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import StreamingResponse

from mock_servers.config import LLMMockSettings
from mock_servers.core.exceptions import InvalidRequestError
from mock_servers.core.logging_config import get_logger
from mock_servers.dependencies import get_completion_service, get_settings
from mock_servers.mock_utils import epoch_seconds
from mock_servers.schemas.chat import ChatCompletionRequest, ModelCard, ModelList
from mock_servers.services.completion_service import CompletionService

router = APIRouter()
logger = get_logger(__name__)

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


@router.get("/health")
async def health_check():
    """Liveness probe used by the test harness before it starts driving requests."""
    return {"status": "ok"}


@router.get("/v1/models", response_model=ModelList)
async def list_models(settings: LLMMockSettings = Depends(get_settings)):
    """List the single synthetic model this mock serves."""
    return ModelList(data=[ModelCard(id=settings.MOCK_MODEL_ID, created=epoch_seconds())])


@router.post("/v1/chat/completions", status_code=status.HTTP_200_OK, response_model=None)
async def create_chat_completion(
    request: Request,
    completion_service: CompletionService = Depends(get_completion_service),
):
    """
    Answer a chat completion request with an echo of the last user message.

    With ``"stream": true`` the reply is delivered word by word as
    ``text/event-stream`` frames, terminated by ``data: [DONE]``.

    A body that is not a valid chat request is rejected with 400 before any
    stream is opened.
    """
    chat_request = await _parse_chat_request(request)

    logger.info(
        "api_chat_completion",
        model=chat_request.model,
        stream=bool(chat_request.stream),
        message_count=len(chat_request.messages),
    )

    if chat_request.stream:
        return StreamingResponse(
            completion_service.stream_completion(
                chat_request,
                correlation_id=getattr(request.state, "correlation_id", None),
            ),
            media_type="text/event-stream",
            headers=STREAM_HEADERS,
        )

    return completion_service.create_completion(chat_request)


async def _parse_chat_request(request: Request) -> ChatCompletionRequest:
    try:
        payload = await request.json()
        return ChatCompletionRequest.model_validate(payload)
    except ValueError as e:
        # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
        logger.warning("chat_request_invalid", error=str(e))
        raise InvalidRequestError() from e
