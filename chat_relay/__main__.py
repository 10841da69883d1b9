"""Startet den Relay-Server: ``python -m chat_relay`` oder ``chat-relay``."""
import uvicorn

from chat_relay.core.config import settings


def main() -> None:
    uvicorn.run(
        "chat_relay.main:app",
        host=settings.service_host,
        port=settings.service_port,
    )


if __name__ == "__main__":
    main()
