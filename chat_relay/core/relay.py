"""Steuert einen Chat-Durchlauf: Validierung, Kontextaufbau, Webhook-Aufruf,
Normalisierung der Antwort und Fortschreiben des Verlaufs."""
import logging
import random
from typing import Any, Callable, Mapping, Optional, Sequence

from chat_relay.core.config import DEFAULT_GENERIC_REPLY
from chat_relay.core.context_store import ContextStore
from chat_relay.core.errors import UpstreamFailure, ValidationError
from chat_relay.core.models import ChatReply, ChatRequest, Exchange, utc_timestamp
from chat_relay.core.upstream import WebhookClient, extract_reply

logger = logging.getLogger(__name__)


class FallbackPicker:
    """Wählt eine Entschuldigungsantwort, wenn der Webhook ausfällt.

    ``choose`` ist austauschbar, damit Tests deterministisch bleiben.
    """

    def __init__(self, responses: Sequence[str], choose: Optional[Callable[[Sequence[str]], str]] = None) -> None:
        if not responses:
            raise ValueError("at least one fallback response is required")
        self.responses = list(responses)
        self.choose = choose or random.choice

    def __call__(self) -> str:
        return self.choose(self.responses)


class ChatRelay:
    """Leitet Nutzernachrichten samt Kontext an n8n weiter und speichert den Austausch."""

    def __init__(
        self,
        store: ContextStore,
        webhook: WebhookClient,
        fallback: FallbackPicker,
        default_session_id: str = "default",
        generic_reply: str = DEFAULT_GENERIC_REPLY,
    ) -> None:
        self.store = store
        self.webhook = webhook
        self.fallback = fallback
        self.default_session_id = default_session_id
        self.generic_reply = generic_reply

    def validate(self, request: ChatRequest) -> str:
        """Prüft die Anfrage und liefert die effektive Session-ID."""
        if not request.message:
            raise ValidationError("Message is required")
        return request.session_id or self.default_session_id

    def build_payload(self, message: str, session_id: str, preferences: Optional[Mapping[str, Any]] = None) -> dict:
        context = self.store.get(session_id)
        if preferences:
            context.preferences.update(preferences)
        return {
            "message": message,
            "sessionId": session_id,
            "context": {
                "history": [exchange.model_dump() for exchange in context.history],
                "preferences": context.preferences,
            },
            "timestamp": utc_timestamp(),
        }

    async def handle(self, request: ChatRequest) -> ChatReply:
        """Führt einen kompletten Durchlauf aus.

        Ablauf:
        1) Validierung (leere Nachricht -> ``ValidationError``).
        2) Payload mit Verlauf und gespeicherten plus neuen Präferenzen bauen.
        3) Webhook-Aufruf; Ausfälle werden geloggt und durch eine Fallback-Antwort ersetzt.
        4) Antwort extrahieren, Austausch und Präferenzen speichern. Nur nach Erfolg wird geschrieben.
        """
        session_id = self.validate(request)
        message = request.message
        preferences = request.context.preferences if request.context else {}

        payload = self.build_payload(message, session_id, preferences)
        logger.info(f"Relaying message for session {session_id} ({len(payload['context']['history'])} prior exchanges)")

        try:
            upstream = await self.webhook.send(payload)
        except UpstreamFailure as exc:
            logger.error(f"Error processing chat message for session {session_id}: {exc}")
            return ChatReply(reply=self.fallback(), error=True)

        reply = extract_reply(upstream, self.generic_reply)
        timestamp = utc_timestamp()
        self.store.append(session_id, Exchange(user=message, bot=reply, timestamp=timestamp))
        if preferences:
            self.store.update_preferences(session_id, preferences)

        return ChatReply(reply=reply, session_id=session_id, timestamp=timestamp)
