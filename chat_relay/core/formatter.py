"""Wandelt den Rohtext des Bots in einfaches HTML für das Chat-Widget um.

Kein vollständiger Markdown-Parser: es werden nur Fett, Kursiv, Aufzählungen
und Zeilenumbrüche ersetzt. Der restliche Text wird NICHT escaped, HTML aus
dem Webhook landet also unverändert im Widget.
"""
import re

BOLD_PATTERN = re.compile(r"\*\*(.*?)\*\*")
ITALIC_PATTERN = re.compile(r"\*(.*?)\*")
LIST_ITEM_PATTERN = re.compile(r"^\*\s+(.+)$", re.MULTILINE)
LIST_WRAP_PATTERN = re.compile(r"<li>.*?</li>", re.DOTALL)
# Aufeinanderfolgende Listen (ggf. mit <br> dazwischen) werden zu einer.
ADJACENT_LISTS_PATTERN = re.compile(r"</ul>\s*(?:<br>\s*)?<ul>")


def format_message(text: str) -> str:
    # Reihenfolge ist wichtig: Fett zuerst, sonst zerlegt die Kursiv-Regel **x**.
    formatted = BOLD_PATTERN.sub(r"<strong>\1</strong>", text)
    formatted = ITALIC_PATTERN.sub(r"<em>\1</em>", formatted)
    formatted = LIST_ITEM_PATTERN.sub(r"<li>\1</li>", formatted)
    formatted = formatted.replace("\n", "<br>")

    if "<li>" in formatted:
        formatted = LIST_WRAP_PATTERN.sub(lambda match: f"<ul>{match.group(0)}</ul>", formatted)
        formatted = ADJACENT_LISTS_PATTERN.sub("", formatted)

    return formatted
