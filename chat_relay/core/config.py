"""Konfigurationsmodul für den Admission Chat Relay: lädt Webhook-Adresse,
Timeouts, Ports und Fallback-Texte via Pydantic-Settings."""
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Antwort, wenn der Webhook zwar antwortet, aber kein Text extrahierbar ist.
DEFAULT_GENERIC_REPLY = "I received your message but need more context."

DEFAULT_FALLBACK_RESPONSES = [
    "I'm having trouble accessing the admission database right now. Please try again in a moment.",
    "It seems I'm experiencing some technical difficulties. Could you please rephrase your admission-related question?",
    "I apologize, but I'm unable to fetch admission information at the moment. Please try again later or contact the admission office directly.",
]


class Settings(BaseSettings):
    """Hält alle konfigurierbaren Werte, die der Relay zur Laufzeit
    benötigt (Webhook-Endpunkt, Timeouts, Verlaufslänge, Ports)."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True)

    n8n_webhook_url: str = Field("https://sythomind.app.n8n.cloud/webhook/chat", alias="N8N_WEBHOOK_URL")
    webhook_timeout_seconds: float = 100.0
    history_limit: int = 10
    default_session_id: str = "default"
    service_name: str = "Engineering Admission Chatbot API"
    service_host: str = "0.0.0.0"
    service_port: int = 8000
    typewriter_interval_ms: int = 15
    generic_reply: str = DEFAULT_GENERIC_REPLY
    fallback_responses: List[str] = Field(default_factory=lambda: list(DEFAULT_FALLBACK_RESPONSES))
    log_file: str = "chat_debug.log"  # Leer = nur Konsole.
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


settings = Settings()
