"""Chat proxy service: forwards chat completions to an Azure OpenAI deployment."""

from __future__ import annotations

import logging
from typing import Any, NamedTuple

import httpx
from azure.core.credentials_async import AsyncTokenCredential
from azure.core.exceptions import ClientAuthenticationError

from chat_proxy.chat.schemas import ChatRequest, ChatResponse
from chat_proxy.config import Settings
from chat_proxy.exceptions import UpstreamRejectedError, UpstreamTransportError

logger = logging.getLogger(__name__)

COGNITIVE_SERVICES_SCOPE = "https://cognitiveservices.azure.com/.default"


class UpstreamResult(NamedTuple):
    status_code: int
    body: Any


def chat_url(settings: Settings) -> str:
    """Chat completions URL of the configured deployment."""
    return (
        f"{settings.azure_openai_endpoint}/openai/deployments/"
        f"{settings.azure_openai_deployment}/chat/completions"
        f"?api-version={settings.azure_openai_api_version}"
    )


def build_headers(settings: Settings, bearer_token: str | None = None) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if settings.azure_openai_api_key:
        headers["api-key"] = settings.azure_openai_api_key
    elif bearer_token:
        headers["Authorization"] = f"Bearer {bearer_token}"
    return headers


async def _bearer_token(
    settings: Settings, credential: AsyncTokenCredential | None
) -> str | None:
    if settings.azure_openai_api_key or credential is None:
        return None
    token = await credential.get_token(COGNITIVE_SERVICES_SCOPE)
    return token.token


async def forward_chat(
    http_client: httpx.AsyncClient,
    settings: Settings,
    request: ChatRequest,
    credential: AsyncTokenCredential | None = None,
) -> UpstreamResult:
    """POST the chat request upstream once and return its status and JSON body.

    Any failure before a parsed body is in hand (connection, timeout, token
    acquisition, malformed JSON) is raised as UpstreamTransportError.
    """
    try:
        token = await _bearer_token(settings, credential)
        response = await http_client.post(
            chat_url(settings),
            headers=build_headers(settings, token),
            json=request.upstream_payload(),
        )
        body = response.json()
    except (httpx.HTTPError, ClientAuthenticationError, ValueError) as exc:
        logger.error("Error in /api/chat: %r", exc)
        raise UpstreamTransportError() from exc

    return UpstreamResult(status_code=response.status_code, body=body)


def extract_reply(body: Any) -> str:
    """Text of choices[0].message.content, or "" when any level is absent."""
    if not isinstance(body, dict):
        return ""
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    message = first.get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    if not isinstance(content, str):
        return ""
    return content


def extract_usage(body: Any) -> Any:
    if not isinstance(body, dict):
        return None
    return body.get("usage")


def upstream_error(body: Any) -> Any:
    """The upstream ``error`` object when present, otherwise the whole body."""
    if isinstance(body, dict) and body.get("error"):
        return body["error"]
    return body


def to_chat_response(result: UpstreamResult) -> ChatResponse:
    """Map an upstream result to the frontend response.

    Non-2xx statuses are raised as UpstreamRejectedError carrying the same
    status code.
    """
    if not 200 <= result.status_code < 300:
        raise UpstreamRejectedError(result.status_code, upstream_error(result.body))
    return ChatResponse(reply=extract_reply(result.body), usage=extract_usage(result.body))


async def send_chat(
    http_client: httpx.AsyncClient,
    settings: Settings,
    request: ChatRequest,
    credential: AsyncTokenCredential | None = None,
) -> ChatResponse:
    result = await forward_chat(http_client, settings, request, credential)
    return to_chat_response(result)
