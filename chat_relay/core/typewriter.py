"""Schreibmaschinen-Effekt für formatierte Bot-Antworten.

Der Renderer deckt das fertige HTML Zeichen für Zeichen auf. Tags und
HTML-Entities werden dabei nie zerschnitten, und noch offene Tags werden in
jedem Zwischenbild geschlossen, damit der Browser kein kaputtes Markup sieht.
"""
import asyncio
import re
from dataclasses import dataclass
from typing import AsyncIterator, Iterator, List, Optional, Tuple

CURSOR_MARKUP = '<span class="cursor">|</span>'
DEFAULT_INTERVAL_MS = 15

TOKEN_PATTERN = re.compile(r"<[^>]+>|&#?\w+;|.", re.DOTALL)
TAG_NAME_PATTERN = re.compile(r"</?\s*([a-zA-Z][a-zA-Z0-9]*)")
VOID_TAGS = frozenset({"br", "hr", "img", "input", "wbr"})


def tokenize(markup: str) -> List[Tuple[str, bool]]:
    """Zerlegt Markup in (Token, sichtbar)-Paare; Tags sind unsichtbar."""
    return [(token, not token.startswith("<") or len(token) == 1) for token in TOKEN_PATTERN.findall(markup)]


def _opening_tag_name(token: str) -> Optional[str]:
    """Name eines öffnenden, nicht leeren Tags, sonst ``None``."""
    match = TAG_NAME_PATTERN.match(token)
    if not match or token.startswith("</") or token.endswith("/>"):
        return None
    name = match.group(1).lower()
    return None if name in VOID_TAGS else name


def _track_tag(token: str, open_tags: List[str]) -> None:
    name = _opening_tag_name(token)
    if name is not None:
        open_tags.append(name)
        return
    match = TAG_NAME_PATTERN.match(token)
    if match and token.startswith("</"):
        closing = match.group(1).lower()
        if closing in open_tags:
            # Bis zum passenden Tag zurückspulen, auch bei falscher Verschachtelung.
            index = len(open_tags) - 1 - open_tags[::-1].index(closing)
            del open_tags[index:]


@dataclass(frozen=True)
class RevealStep:
    """Ergebnis eines Ticks: neu aufgedecktes Markup plus Schluss-Tags für offene Elemente."""

    delta: str
    closing: str
    done: bool


class TypewriterRenderer:
    """Zustandsautomat ``Revealing(index)`` -> ``Done`` für eine Nachricht.

    Jeder Schritt deckt eine weitere sichtbare Einheit auf. Der Schritt nach
    der letzten Einheit beendet den Automaten; danach gilt das fertige Markup.
    Der Automat arbeitet inkrementell, jeder Schritt liefert nur das neue
    Stück Markup.
    """

    def __init__(self, markup: str, interval_ms: int = DEFAULT_INTERVAL_MS) -> None:
        self.markup = markup
        self.interval_ms = interval_ms
        self._tokens = tokenize(markup)
        self.total = sum(1 for _, visible in self._tokens if visible)
        self.index = 0
        self.done = False
        self._pos = 0
        self._open_tags: List[str] = []
        self._revealed: List[str] = []

    @property
    def state(self) -> str:
        return "done" if self.done else f"revealing({self.index})"

    def closing_tags(self) -> str:
        return "".join(f"</{name}>" for name in reversed(self._open_tags))

    def step(self) -> RevealStep:
        if self.done or self.index >= self.total:
            self.done = True
            return RevealStep("", "", True)

        parts: List[str] = []
        while self._pos < len(self._tokens):
            token, visible = self._tokens[self._pos]
            self._pos += 1
            parts.append(token)
            if visible:
                break
            _track_tag(token, self._open_tags)
        self.index += 1

        # Schließende und leere Tags direkt danach gehören noch zu diesem Schritt,
        # Öffnungs-Tags warten auf ihre erste sichtbare Einheit.
        while self._pos < len(self._tokens):
            token, visible = self._tokens[self._pos]
            if visible or _opening_tag_name(token) is not None:
                break
            _track_tag(token, self._open_tags)
            parts.append(token)
            self._pos += 1

        delta = "".join(parts)
        self._revealed.append(delta)
        return RevealStep(delta, self.closing_tags(), False)

    def tick(self) -> str:
        """Ein Schritt als vollständiges Zwischenbild mit Cursor."""
        step = self.step()
        if step.done:
            return self.markup
        return "".join(self._revealed) + CURSOR_MARKUP + step.closing

    def frames(self) -> Iterator[str]:
        while not self.done:
            yield self.tick()

    async def stream_steps(self) -> AsyncIterator[RevealStep]:
        """Liefert die Schritte mit ``interval_ms`` Pause dazwischen."""
        delay = self.interval_ms / 1000
        while not self.done:
            yield self.step()
            if not self.done:
                await asyncio.sleep(delay)
