"""Azure OpenAI chat proxy: FastAPI application."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import uvicorn
from azure.core.credentials_async import AsyncTokenCredential
from azure.identity.aio import DefaultAzureCredential
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from chat_proxy import __version__
from chat_proxy.chat.router import router as chat_router
from chat_proxy.config import REQUIRED_ENV_VARS, Settings, get_settings
from chat_proxy.exceptions import register_exception_handlers
from chat_proxy.frontend import mount_frontend
from chat_proxy.middleware import BodySizeLimitMiddleware, log_requests, security_headers

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    credential: AsyncTokenCredential | None = None,
) -> FastAPI:
    """Build the proxy app around an already-loaded Settings instance.

    ``transport`` replaces the network for the shared upstream client and
    ``credential`` replaces the managed identity credential.
    """
    if settings is None:
        settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Startup / shutdown lifecycle: creates the upstream HTTP client."""
        client = httpx.AsyncClient(
            transport=transport,
            timeout=httpx.Timeout(settings.azure_openai_timeout),
        )
        app.state.http_client = client

        owned_credential = None
        app.state.credential = credential
        if credential is None and settings.azure_openai_use_managed_identity:
            if settings.azure_openai_api_key:
                logger.warning("API key configured; managed identity setting ignored")
            else:
                owned_credential = DefaultAzureCredential()
                app.state.credential = owned_credential

        logger.info(
            "Proxying to %s (deployment=%s, api-version=%s, auth=%s)",
            settings.azure_openai_endpoint,
            settings.azure_openai_deployment,
            settings.azure_openai_api_version,
            _auth_mode(settings, app.state.credential),
        )

        yield

        await client.aclose()
        if owned_credential is not None:
            await owned_credential.close()
        logger.info("Upstream client closed")

    app = FastAPI(
        title="Azure OpenAI Chat Proxy",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Middleware: last added runs first
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)
    app.middleware("http")(security_headers)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(log_requests)

    # Exception handlers
    register_exception_handlers(app)

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    # API routers
    app.include_router(chat_router)

    # Serve frontend static files at root, behind the API routes
    mount_frontend(app, settings.frontend_dir)

    return app


def _auth_mode(settings: Settings, credential: AsyncTokenCredential | None) -> str:
    if settings.azure_openai_api_key:
        return "api-key"
    if credential is not None:
        return "managed-identity"
    return "none"


def run() -> None:
    """Console entry point: load settings, then serve with uvicorn."""
    try:
        settings = get_settings()
    except ValidationError as exc:
        missing = sorted(
            {".".join(str(part) for part in err["loc"]).upper() for err in exc.errors()}
        )
        print(
            "Missing or invalid Azure OpenAI configuration: "
            f"{', '.join(missing) or ', '.join(REQUIRED_ENV_VARS)}",
            file=sys.stderr,
        )
        sys.exit(1)

    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
