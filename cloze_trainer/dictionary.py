"""Word lookup against the Free Dictionary API, cached in the database."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from cloze_trainer.models import WordDetail

if TYPE_CHECKING:
    from cloze_trainer.config import Settings
    from cloze_trainer.db import Database

log = logging.getLogger("cloze_trainer.dictionary")

UNKNOWN_POS = "unknown"
NO_MEANING = "No definition found."


def _text(obj: object, key: str) -> str:
    value = obj.get(key) if isinstance(obj, dict) else None
    return value if isinstance(value, str) else ""


def _first(items: object) -> object:
    return items[0] if isinstance(items, list) and items else None


def _pick_phonetic(entry: dict) -> str:
    if _text(entry, "phonetic"):
        return entry["phonetic"]
    phonetics = entry.get("phonetics")
    if not isinstance(phonetics, list):
        return ""
    # Prefer a transcription that has a recording attached
    with_audio = next((p for p in phonetics if _text(p, "text") and _text(p, "audio")), None)
    if with_audio:
        return with_audio["text"]
    first = next((p for p in phonetics if _text(p, "text")), None)
    return first["text"] if first else ""


def parse_entry(word: str, entry: dict) -> WordDetail:
    """Reduce one dictionary API entry to a ``WordDetail``.

    Fields of the wrong shape are treated as missing.
    """
    phonetic = _pick_phonetic(entry)
    if phonetic and not phonetic.startswith("/"):
        phonetic = f"/{phonetic}/"

    first_meaning = _first(entry.get("meanings"))
    part_of_speech = _text(first_meaning, "partOfSpeech")
    definitions = first_meaning.get("definitions") if isinstance(first_meaning, dict) else None
    definition = _first(definitions)
    meaning = _text(definition, "definition")
    if meaning and _text(definition, "example"):
        meaning += f"\nExample: {definition['example']}"

    return WordDetail(
        word=word,
        phonetic=phonetic,
        part_of_speech=part_of_speech or UNKNOWN_POS,
        meaning=meaning or NO_MEANING,
    )


async def fetch_word_detail(
    word: str,
    base_url: str,
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> WordDetail | None:
    """Look *word* up online.  Returns None on any failure."""
    word = word.strip() if word else ""
    if not word:
        return None
    url = f"{base_url.rstrip('/')}/{quote(word.lower())}"
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            resp = await client.get(url)
        if resp.status_code != 200:
            log.info("Lookup '%s': HTTP %d", word, resp.status_code)
            return None
        data = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        log.warning("Lookup '%s' failed: %s", word, e)
        return None

    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return None
    return parse_entry(word, data[0])


async def lookup_word(
    word: str,
    db: Database,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> WordDetail | None:
    """Cached lookup: consult the word cache, otherwise fetch and store."""
    word = word.strip() if word else ""
    if not word:
        return None
    cached = db.get_word_cache(word)
    if cached:
        return cached
    detail = await fetch_word_detail(
        word, settings.dictionary_url, settings.dictionary_timeout, transport=transport,
    )
    if detail:
        db.set_word_cache(detail)
    return detail
