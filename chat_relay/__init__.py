"""Admission Chat Relay: FastAPI-Gateway zwischen Chat-Widget und n8n-Webhook."""

__version__ = "1.0.0"
