import json

import httpx
import pytest
from fastapi.testclient import TestClient

from chat_proxy.config import Settings
from chat_proxy.main import create_app


def make_settings(tmp_path, **overrides):
    values = {
        "azure_openai_endpoint": "https://pelican.openai.azure.com",
        "azure_openai_api_key": "secret-key",
        "azure_openai_api_version": "2024-12-01-preview",
        "azure_openai_deployment": "chat-model",
        "frontend_dir": tmp_path / "frontend",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeUpstream:
    """Records outbound requests and answers with a canned response."""

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.body = {"choices": [{"message": {"content": "hi"}}], "usage": {"total_tokens": 5}}
        self.error = None

    def reply(self, status_code, body):
        self.status_code = status_code
        self.body = body

    def fail(self, error):
        self.error = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, (bytes, str)):
            return httpx.Response(self.status_code, content=self.body)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_payload(self):
        return json.loads(self.requests[-1].content)


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def client(settings, upstream):
    app = create_app(settings, transport=httpx.MockTransport(upstream.handler))
    with TestClient(app) as c:
        yield c
