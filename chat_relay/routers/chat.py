"""Chat-Router: Hauptendpunkt des Relays plus Streaming-Variante mit
Schreibmaschinen-Effekt."""
import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from chat_relay.core.formatter import format_message
from chat_relay.core.models import ChatReply, ChatRequest
from chat_relay.core.typewriter import TypewriterRenderer

router = APIRouter(prefix="/api", tags=["Chat"])
logger = logging.getLogger(__name__)


@router.post("/chat", response_model=ChatReply, response_model_exclude_none=True)
async def handle_message(message: ChatRequest, request: Request):
    """Leitet eine Nutzernachricht an n8n weiter.

    Webhook-Fehler kommen nie beim Nutzer an: statt eines HTTP-Fehlers gibt es
    eine Fallback-Antwort mit ``error: true``.
    """
    relay = request.app.state.relay
    return await relay.handle(message)


@router.post("/chat/stream")
async def stream_message(message: ChatRequest, request: Request):
    """Wie ``/api/chat``, liefert die Antwort aber als NDJSON-Frames.

    Jede Zeile ist ein ``frame`` mit dem neu aufgedeckten Stück HTML (``delta``)
    und den Schluss-Tags der noch offenen Elemente (``close``). Die letzte Zeile
    (``done``) enthält das fertige HTML und die Metadaten der Antwort.
    """
    relay = request.app.state.relay
    interval_ms = request.app.state.settings.typewriter_interval_ms

    # Validierung und Webhook-Aufruf vor dem Streamen, damit 400er als solche ankommen.
    reply = await relay.handle(message)
    renderer = TypewriterRenderer(format_message(reply.reply), interval_ms=interval_ms)

    async def frame_generator():
        async for step in renderer.stream_steps():
            if step.done:
                break
            yield json.dumps({"type": "frame", "delta": step.delta, "close": step.closing}) + "\n"

        final = {"type": "done", "html": renderer.markup}
        final.update(reply.model_dump(by_alias=True, exclude_none=True))
        yield json.dumps(final) + "\n"

    return StreamingResponse(frame_generator(), media_type="application/x-ndjson")
