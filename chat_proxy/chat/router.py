"""Chat proxy API routes."""

from fastapi import APIRouter, Request

from chat_proxy.chat import service
from chat_proxy.chat.schemas import ChatRequest, ChatResponse

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
async def chat(body: ChatRequest, request: Request):
    state = request.app.state
    return await service.send_chat(
        state.http_client,
        state.settings,
        body,
        credential=state.credential,
    )
