"""Einsicht in und Löschen von gespeicherten Gesprächskontexten."""
from fastapi import APIRouter, Request

from chat_relay.core.models import ConversationCleared, ConversationRead

router = APIRouter(prefix="/api/conversation", tags=["Conversation"])


@router.get("/{session_id}", response_model=ConversationRead)
async def get_conversation(session_id: str, request: Request):
    """Zeigt Verlauf und Präferenzen einer Session; 404 wenn unbekannt."""
    context = request.app.state.store.lookup(session_id)
    return ConversationRead(session_id=session_id, history=context.history, preferences=context.preferences)


@router.delete("/{session_id}", response_model=ConversationCleared)
async def clear_conversation(session_id: str, request: Request):
    """Löscht den Kontext einer Session. Antwortet immer mit 200."""
    request.app.state.store.clear(session_id)
    return ConversationCleared(session_id=session_id)
