"""FastAPI-Einstiegspunkt für den Admission Chat Relay."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from chat_relay import __version__
from chat_relay.core.config import Settings, settings as default_settings
from chat_relay.core.context_store import ContextStore
from chat_relay.core.errors import ChatRelayError
from chat_relay.core.logging_setup import setup_logging
from chat_relay.core.models import HealthStatus
from chat_relay.core.relay import ChatRelay, FallbackPicker
from chat_relay.core.upstream import WebhookClient
from chat_relay.routers import chat as chat_router
from chat_relay.routers import conversation as conversation_router

STATIC_DIR = Path(__file__).parent / "static"

logger = logging.getLogger(__name__)


async def chat_relay_error_handler(request: Request, exc: ChatRelayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "message": "Something went wrong on our end"},
    )


def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    fallback_picker: Optional[FallbackPicker] = None,
) -> FastAPI:
    """Baut die App. Tests können HTTP-Client und Fallback-Auswahl injizieren."""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Der Store lebt genau so lange wie der Prozess; nichts wird persistiert.
        store = ContextStore(history_limit=settings.history_limit)
        webhook = WebhookClient(settings.n8n_webhook_url, settings.webhook_timeout_seconds, client=http_client)

        app.state.settings = settings
        app.state.store = store
        app.state.relay = ChatRelay(
            store=store,
            webhook=webhook,
            fallback=fallback_picker or FallbackPicker(settings.fallback_responses),
            default_session_id=settings.default_session_id,
            generic_reply=settings.generic_reply,
        )

        base_url = f"http://localhost:{settings.service_port}"
        logger.info(f"{settings.service_name} running on port {settings.service_port}")
        logger.info(f"Frontend: {base_url}")
        logger.info(f"API Health: {base_url}/api/health")
        try:
            yield
        finally:
            # Schliesst den HTTP-Client nur, wenn er nicht von aussen kam.
            await webhook.aclose()

    app = FastAPI(
        title=settings.service_name,
        version=__version__,
        description="Relays chat widget messages to an n8n webhook.",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ChatRelayError, chat_relay_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Statische Dateien für das Chat-Widget
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    @app.get("/", include_in_schema=False)
    async def get_chat_widget():
        return FileResponse(STATIC_DIR / "index.html")

    @app.get("/api/health", response_model=HealthStatus, tags=["Health"])
    async def health():
        return HealthStatus(service=settings.service_name)

    app.include_router(chat_router.router)
    app.include_router(conversation_router.router)
    return app


# Setup Logging (File + Console)
setup_logging(default_settings.log_file)

app = create_app()
