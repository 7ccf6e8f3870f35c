"""Chat API router.

POST /chat runs one turn of the career-advice dialogue. The backend keeps
no session: the client sends the full history and persona every time and
stores what comes back. The body is the bare ``{message, persona, stage}``
document, not a ``{"data": ...}`` envelope.
"""

import structlog
from fastapi import APIRouter, Request

from hh_vibe.api.deps import Orchestrator
from hh_vibe.core.config import settings
from hh_vibe.core.rate_limiting import limiter
from hh_vibe.schemas.chat import ChatRequest, ChatResponse

logger = structlog.get_logger()

router = APIRouter()


@router.post("", response_model=ChatResponse, response_model_exclude_none=True)
@limiter.limit(settings.rate_limit_chat)
async def chat(
    request: Request,  # noqa: ARG001
    body: ChatRequest,
    orchestrator: Orchestrator,
) -> ChatResponse:
    """Process one chat message.

    Security: Rate limited by client IP to prevent LLM cost abuse.

    Args:
        request: HTTP request (required by the rate limiter).
        body: Message, history and persona.
        orchestrator: Chat orchestrator (injected).

    Returns:
        Assistant message, updated persona and stage.
    """
    response = await orchestrator.handle(body)
    logger.info(
        "chat_turn_complete",
        history_length=len(body.history),
        stage=response.stage,
        message_type=response.message.type,
    )
    return response
