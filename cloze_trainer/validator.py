"""Check a parsed completion against the cloze exercise schema.

Shape mismatches come back as ``ValidationResult(error=...)``; nothing here
raises.  The rules are asymmetric on purpose: ``article`` and ``options``
are strict (first violation wins), while ``optionsDetail`` and
``annotations`` are enrichment data and bad entries are dropped silently.
Keys stay the generator's strings; numeric keys are resolved later.
"""
from __future__ import annotations

import json
import logging
import re

from cloze_trainer.models import (
    OPTION_COUNT,
    ExerciseDraft,
    OptionDetail,
    ValidationResult,
    WordAnnotation,
)

_log = logging.getLogger("cloze_trainer.generate")

PLACEHOLDER_RE = re.compile(r"\{\{\s*(\d+)\s*\}\}")


def _to_str(value: object) -> str:
    """Coerce a stray scalar (number, bool, null) to its JSON spelling."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _text_field(entry: dict, key: str, strip: bool = True) -> str | None:
    value = entry.get(key)
    if isinstance(value, str):
        if not value.strip():
            return None
        if strip:
            value = value.strip()
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        value = _to_str(value)
    else:
        return None
    return value or None


def _option_detail(entry: object) -> OptionDetail | None:
    if not isinstance(entry, dict):
        return None
    # Unstripped: must equal an option string exactly
    word = _text_field(entry, "word", strip=False)
    meaning = _text_field(entry, "meaning")
    phonetic = _text_field(entry, "phonetic")
    if word is None or meaning is None or phonetic is None:
        return None
    return OptionDetail(
        word=word,
        meaning=meaning,
        phonetic=phonetic,
        part_of_speech=_text_field(entry, "partOfSpeech"),
    )


def _validate_options_detail(raw: dict) -> dict[str, list[OptionDetail]]:
    out: dict[str, list[OptionDetail]] = {}
    for key, entries in raw.items():
        if not isinstance(entries, list) or len(entries) != OPTION_COUNT:
            _log.info("  optionsDetail[%r] is not a list of %d, dropped", key, OPTION_COUNT)
            continue
        details = [d for d in (_option_detail(e) for e in entries) if d is not None]
        if len(details) < len(entries):
            _log.info(
                "  optionsDetail[%r]: dropped %d incomplete entries",
                key, len(entries) - len(details),
            )
        if details:
            out[str(key)] = details
    return out


def _validate_annotations(raw: list) -> list[WordAnnotation]:
    annotations = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        word = _text_field(entry, "word")
        meaning = _text_field(entry, "meaning")
        if word is None or meaning is None:
            continue
        annotations.append(WordAnnotation(word=word, meaning=meaning))
    return annotations


def check_placeholders(article: str, options: dict[str, list[str]]) -> tuple[set[str], set[str]]:
    """Return (placeholders without options, option keys without placeholders).

    Only reported, never enforced: a mismatch shows up as a rendering
    glitch, not a broken exercise.
    """
    placeholders = {str(int(m)) for m in PLACEHOLDER_RE.findall(article)}
    keys = set(options)
    return placeholders - keys, keys - placeholders


def validate_exercise(data: object) -> ValidationResult:
    if not isinstance(data, dict):
        return ValidationResult(error="missing article or options (response is not a JSON object)")
    missing = [k for k in ("article", "options") if k not in data]
    if missing:
        return ValidationResult(error=f"missing article or options (missing: {', '.join(missing)})")

    article = data["article"]
    if not isinstance(article, str) or not article.strip():
        return ValidationResult(error="article must be a non-empty string")
    article = article.strip()

    raw_options = data["options"]
    if not isinstance(raw_options, dict):
        return ValidationResult(error="options must be an object")

    options: dict[str, list[str]] = {}
    for key, value in raw_options.items():
        if not isinstance(value, list) or len(value) != OPTION_COUNT:
            n = len(value) if isinstance(value, list) else type(value).__name__
            return ValidationResult(
                error=f'options["{key}"] must be an array of {OPTION_COUNT} strings (got {n})'
            )
        options[str(key)] = [_to_str(v) for v in value]

    options_detail: dict[str, list[OptionDetail]] = {}
    raw_detail = data.get("optionsDetail")
    if isinstance(raw_detail, dict):
        options_detail = _validate_options_detail(raw_detail)

    annotations: list[WordAnnotation] = []
    raw_annotations = data.get("annotations")
    if isinstance(raw_annotations, list):
        annotations = _validate_annotations(raw_annotations)

    unfilled, unused = check_placeholders(article, options)
    if unfilled or unused:
        _log.warning(
            "  Placeholder mismatch: no options for %s, no placeholder for %s",
            sorted(unfilled), sorted(unused),
        )

    return ValidationResult(draft=ExerciseDraft(
        article=article,
        options=options,
        options_detail=options_detail,
        annotations=annotations,
    ))
