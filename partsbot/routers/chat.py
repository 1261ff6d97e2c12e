"""
Chat router.

This router:
1. Receives the conversation and detected part/model numbers
2. Runs one turn through the ChatService
3. Returns the assistant message and the retained product results

Failures always come back with a friendly assistant message; error details
are only logged.
"""
import logging
import time
import uuid

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from partsbot.agents.prompts import APOLOGY_MESSAGE, TIMEOUT_MESSAGE
from partsbot.exceptions import TurnTimeoutError
from partsbot.models.schemas import ChatMessage, ChatRequest, ChatResponse, ErrorResponse
from partsbot.services.chat_service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


def get_chat_service(request: Request) -> ChatService:
    """ChatService built at startup and stored on the application state."""
    return request.app.state.chat_service


def _assistant_message(content: str) -> ChatMessage:
    return ChatMessage(
        id=str(uuid.uuid4()),
        role="assistant",
        content=content,
        timestamp=int(time.time() * 1000),
    )


def _error_response(status_code: int, error: str, content: str) -> JSONResponse:
    body = ErrorResponse(error=error, message=_assistant_message(content))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", by_alias=True))


@router.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest, chat_service: ChatService = Depends(get_chat_service)):
    """
    Chat endpoint.

    Args:
        request: Conversation plus optional detected part/model numbers

    Returns:
        ChatResponse with the assistant message and product results
    """
    user_message = request.last_user_message()
    if user_message is None:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "No user message found"},
        )

    try:
        logger.info(f"Chat request: {user_message.content[:200]!r}")
        result = await chat_service.handle_turn(
            request.messages,
            part_number=request.part_number,
            model_number=request.model_number,
        )
    except TurnTimeoutError as e:
        logger.error(f"Chat turn timed out: {e}")
        return _error_response(status.HTTP_504_GATEWAY_TIMEOUT, "Request timed out", TIMEOUT_MESSAGE)
    except Exception as e:
        logger.error(f"Error processing chat request: {e}", exc_info=True)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An error occurred while processing your request",
            APOLOGY_MESSAGE,
        )

    logger.info(
        f"Chat result: out_of_scope={result.out_of_scope}, "
        f"tool_calls={[o.call.name for o in result.tool_outcomes]}, "
        f"products={len(result.product_results)}"
    )
    return ChatResponse(
        message=_assistant_message(result.content),
        product_results=result.product_results,
    )
