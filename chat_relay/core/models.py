"""API- und Speichermodelle des Relays: Chat-Anfragen, Antworten und der
Sitzungskontext (Verlauf + Präferenzen)."""
import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_timestamp() -> str:
    """ISO-8601 in UTC mit Millisekunden und ``Z``-Suffix, z.B. ``2024-05-01T12:00:00.000Z``."""
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Exchange(BaseModel):
    """Ein abgeschlossener Austausch: Nutzernachricht, Bot-Antwort, Zeitstempel."""

    model_config = ConfigDict(frozen=True)

    user: str
    bot: str
    timestamp: str = Field(default_factory=utc_timestamp)


class SessionContext(BaseModel):
    """Gesprächskontext einer Session, wie er an den Webhook geht."""

    history: List[Exchange] = Field(default_factory=list)
    preferences: Dict[str, Any] = Field(default_factory=dict)


class ClientContext(BaseModel):
    """Optionaler Kontext, den das Widget mitschicken kann."""

    preferences: Dict[str, Any] = Field(default_factory=dict)


class ChatRequest(BaseModel):
    """Eingehende Nachricht aus dem Chat-Widget."""

    model_config = ConfigDict(populate_by_name=True)

    # Optional, damit eine fehlende Nachricht als 400 statt 422 gemeldet wird.
    message: Optional[str] = None
    session_id: Optional[str] = Field(None, alias="sessionId")
    context: Optional[ClientContext] = None


class ChatReply(BaseModel):
    """Antwort an das Widget. Bei Webhook-Fehlern nur ``reply`` und ``error``."""

    model_config = ConfigDict(populate_by_name=True)

    reply: str
    session_id: Optional[str] = Field(None, alias="sessionId")
    timestamp: Optional[str] = None
    error: Optional[bool] = None


class ConversationRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    history: List[Exchange]
    preferences: Dict[str, Any]


class ConversationCleared(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = "Conversation cleared successfully"
    session_id: str = Field(..., alias="sessionId")


class HealthStatus(BaseModel):
    status: str = "OK"
    timestamp: str = Field(default_factory=utc_timestamp)
    service: str
