"""In-Memory-Speicher für Gesprächskontexte je Session.

Der Store lebt so lange wie der Prozess: nach einem Neustart sind alle
Verläufe weg. Für persistente Verläufe müsste eine Datenbank her.
"""
import logging
from typing import Any, Dict, Mapping

from chat_relay.core.errors import NotFoundError
from chat_relay.core.models import Exchange, SessionContext

logger = logging.getLogger(__name__)

# Maximale Anzahl gespeicherter Austausche pro Session.
DEFAULT_HISTORY_LIMIT = 10


class ContextStore:
    """Verwaltet Verlauf und Präferenzen je Session-ID.

    Alle schreibenden Operationen laufen ohne ``await`` zwischen Lesen und
    Schreiben, damit parallele Requests derselben Session auf dem Event-Loop
    keine Austausche verlieren. Bei Nutzung aus mehreren Threads braucht es
    zusätzlich einen Lock pro Session.
    """

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        self.history_limit = history_limit
        # Mappt session_id -> SessionContext
        self._contexts: Dict[str, SessionContext] = {}

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._contexts

    def __len__(self) -> int:
        return len(self._contexts)

    def __bool__(self) -> bool:
        # Ein leerer Store ist trotzdem ein gültiger Store.
        return True

    def get(self, session_id: str) -> SessionContext:
        """Liefert eine Kopie des Kontexts oder eine leere Hülle.

        Die leere Hülle wird nicht gespeichert; eine Session entsteht erst
        mit dem ersten Schreibzugriff.
        """
        context = self._contexts.get(session_id)
        if context is None:
            return SessionContext()
        return context.model_copy(deep=True)

    def lookup(self, session_id: str) -> SessionContext:
        """Wie ``get``, wirft aber ``NotFoundError`` für unbekannte Sessions."""
        context = self._contexts.get(session_id)
        if context is None:
            raise NotFoundError("Conversation not found")
        return context.model_copy(deep=True)

    def append(self, session_id: str, exchange: Exchange) -> SessionContext:
        """Hängt einen Austausch an und kürzt auf die letzten ``history_limit`` Einträge."""
        context = self._contexts.setdefault(session_id, SessionContext())
        history = context.history + [exchange]
        context.history = history[-self.history_limit:]
        return context.model_copy(deep=True)

    def update_preferences(self, session_id: str, preferences: Mapping[str, Any]) -> SessionContext:
        """Übernimmt Präferenzen aus dem Widget in den Sessionkontext."""
        context = self._contexts.setdefault(session_id, SessionContext())
        context.preferences.update(preferences)
        return context.model_copy(deep=True)

    def clear(self, session_id: str) -> None:
        """Entfernt den Kontext einer Session. Unbekannte IDs sind kein Fehler."""
        if self._contexts.pop(session_id, None) is not None:
            logger.info("Cleared conversation context for session %s", session_id)
