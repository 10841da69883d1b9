"""Anbindung an den n8n-Webhook: sendet den Gesprächskontext und ordnet die
frei geformte Antwort einer von drei Varianten zu."""
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx

from chat_relay.core.errors import UpstreamFailure

logger = logging.getLogger(__name__)

# Felder, in denen n8n-Workflows üblicherweise den Antworttext ablegen (in Prioritätsreihenfolge).
REPLY_FIELDS = ("reply", "response", "output", "text")


@dataclass(frozen=True)
class TextPayload:
    """Der Webhook hat direkt einen String geliefert."""

    text: str


@dataclass(frozen=True)
class FieldPayload:
    """JSON-Objekt mit einem der bekannten Antwortfelder."""

    field: str
    value: str


@dataclass(frozen=True)
class OpaquePayload:
    """Alles andere: leerer Body, ``{}``, Listen, Zahlen, unbekannte Felder."""

    raw: Any


UpstreamPayload = Union[TextPayload, FieldPayload, OpaquePayload]


def classify_payload(raw: Any) -> UpstreamPayload:
    if isinstance(raw, str):
        return TextPayload(raw) if raw else OpaquePayload(raw)
    if isinstance(raw, dict):
        for field in REPLY_FIELDS:
            value = raw.get(field)
            if isinstance(value, str) and value:
                return FieldPayload(field, value)
    return OpaquePayload(raw)


def extract_reply(payload: UpstreamPayload, default: str) -> str:
    """Liefert den anzuzeigenden Text; ``default`` wenn nichts Brauchbares dabei ist."""
    if isinstance(payload, TextPayload):
        return payload.text
    if isinstance(payload, FieldPayload):
        return payload.value
    return default


def parse_response(response: httpx.Response) -> UpstreamPayload:
    """Dekodiert den Body als JSON, fällt bei Nicht-JSON auf den Rohtext zurück."""
    if not response.content:
        return OpaquePayload(None)
    try:
        raw = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raw = response.text
    return classify_payload(raw)


class WebhookClient:
    """Kapselt den POST an den n8n-Webhook inkl. Timeout."""

    def __init__(
        self,
        webhook_url: str,
        timeout_seconds: float = 100.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.webhook_url = webhook_url
        self.timeout_seconds = timeout_seconds
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None

    async def send(self, payload: dict) -> UpstreamPayload:
        """Sendet den Payload und klassifiziert die Antwort.

        Netzwerkfehler, Timeouts und Nicht-2xx-Antworten werden als
        ``UpstreamFailure`` weitergereicht; es gibt keinen Retry.
        """
        try:
            response = await self._client.post(
                self.webhook_url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise UpstreamFailure(f"Webhook timed out after {self.timeout_seconds}s") from exc
        except httpx.HTTPStatusError as exc:
            raise UpstreamFailure(f"Webhook returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise UpstreamFailure(f"Webhook request failed: {exc}") from exc

        payload_kind = parse_response(response)
        logger.debug("Webhook response classified as %s", type(payload_kind).__name__)
        return payload_kind

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
