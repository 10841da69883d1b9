"""Fehlerklassen des Relays. Jede Klasse trägt den HTTP-Status, mit dem sie
an der API-Grenze gerendert wird."""


class ChatRelayError(Exception):
    """Basisklasse für alle fachlichen Fehler des Relays."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ChatRelayError):
    """Ungültige Anfrage, z.B. fehlende oder leere Nachricht."""

    status_code = 400


class NotFoundError(ChatRelayError):
    """Für die angefragte Session existiert kein Kontext."""

    status_code = 404


class UpstreamFailure(ChatRelayError):
    """Webhook nicht erreichbar, Timeout oder Nicht-2xx-Status.

    Wird im Relay abgefangen und nie an den Client durchgereicht.
    """

    status_code = 502
