"""Turn a user word list into a validated cloze exercise via the LLM."""
from __future__ import annotations

import json
import logging
import random
import re
from enum import Enum
from typing import TYPE_CHECKING

from cloze_trainer.errors import GenerationError, MalformedResponseError, SchemaError
from cloze_trainer.models import (
    ExerciseDraft,
    GenerationResult,
    OptionDetail,
    ValidatedExercise,
)
from cloze_trainer.parsers.word_list_parser import parse_word_list
from cloze_trainer.prompts import SYSTEM_PROMPT, build_prompt
from cloze_trainer.validator import validate_exercise

if TYPE_CHECKING:
    from cloze_trainer.providers.base import LLMProvider

_log = logging.getLogger("cloze_trainer.generate")

PREVIEW_CHARS = 200

# ASCII digits only; int() would also take "1_0" and full-width digits
BLANK_KEY_RE = re.compile(r"\s*\d+\s*", re.ASCII)

GENERIC_ERROR = "Generation failed, please try again later."


class Stage(Enum):
    NORMALIZING = "normalizing"
    PROMPTING = "prompting"
    REQUESTING = "requesting"
    RESPONSE_PARSING = "response_parsing"
    VALIDATING = "validating"
    RANDOMIZING = "randomizing"
    PROJECTING = "projecting"


def extract_json(text: str) -> object:
    """Parse *text* as JSON, falling back to its outermost ``{…}`` span.

    The generator sometimes wraps the object in commentary despite being
    told not to.  Raises ``MalformedResponseError`` if neither parse works.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        first_error = e

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        try:
            return json.loads(text[start : end + 1])
        except json.JSONDecodeError:
            pass

    preview = text[:PREVIEW_CHARS]
    raise MalformedResponseError(
        f"The generation service returned invalid JSON ({first_error.msg}). "
        f"Response began with: {preview!r}",
        preview=preview,
    )


def _match_details(order: list[str], details: list[OptionDetail]) -> list[OptionDetail] | None:
    """Reorder *details* so ``result[i].word == order[i]``, or None if impossible."""
    pool = list(details)
    matched = []
    for option in order:
        idx = next((i for i, d in enumerate(pool) if d.word == option), None)
        if idx is None:
            return None
        matched.append(pool.pop(idx))
    return matched


def shuffle_options(draft: ExerciseDraft, rng: random.Random) -> ExerciseDraft:
    """Shuffle every blank's options and carry the detail entries along.

    A blank whose details cannot be paired one-to-one with its shuffled
    options loses its details entirely.
    """
    options: dict[str, list[str]] = {}
    details: dict[str, list[OptionDetail]] = {}
    for key, opts in draft.options.items():
        order = list(opts)
        rng.shuffle(order)
        options[key] = order

        blank_details = draft.options_detail.get(key)
        if blank_details is None:
            continue
        matched = _match_details(order, blank_details)
        if matched is None:
            _log.info("  optionsDetail[%r] does not match its options, dropped", key)
            continue
        details[key] = matched

    return ExerciseDraft(
        article=draft.article,
        options=options,
        options_detail=details,
        annotations=list(draft.annotations),
    )


def _blank_number(key: str) -> int | None:
    if not BLANK_KEY_RE.fullmatch(key):
        return None
    n = int(key)
    return n if n >= 1 else None


def project_exercise(draft: ExerciseDraft, answer_key: dict[str, str]) -> ValidatedExercise:
    """Re-key by blank number, dropping keys that are not positive integers.

    Optional parts that end up empty are left as None.
    """
    options = {}
    for key, opts in draft.options.items():
        n = _blank_number(key)
        if n is None:
            _log.info("  Ignoring non-numeric option key %r", key)
            continue
        options[n] = tuple(opts)

    numbered_key = {}
    for key, correct in answer_key.items():
        n = _blank_number(key)
        if n is not None:
            numbered_key[n] = correct

    details = {}
    for key, blank_details in draft.options_detail.items():
        n = _blank_number(key)
        if n is not None:
            details[n] = tuple(blank_details)

    return ValidatedExercise(
        article=draft.article,
        options=options,
        answer_key=numbered_key,
        options_detail=details or None,
        annotations=list(draft.annotations) or None,
    )


async def generate_cloze_test(
    words: str,
    llm: LLMProvider,
    system_prompt: str = SYSTEM_PROMPT,
    rng: random.Random | None = None,
) -> GenerationResult:
    """Generate one cloze exercise for the raw word-list text *words*.

    Never raises: every failure comes back as ``GenerationResult.fail``.
    """
    stage = Stage.NORMALIZING
    try:
        _log.debug("Stage: %s", stage.value)
        word_list = parse_word_list(words)

        stage = Stage.PROMPTING
        _log.debug("Stage: %s", stage.value)
        prompt = build_prompt(word_list, system_prompt=system_prompt)
        _log.info("Generate cloze test for %d word(s) with %s", len(word_list), llm.name())

        stage = Stage.REQUESTING
        _log.debug("Stage: %s", stage.value)
        completion = await llm.generate(prompt)

        stage = Stage.RESPONSE_PARSING
        _log.debug("Stage: %s", stage.value)
        data = extract_json(completion)

        stage = Stage.VALIDATING
        _log.debug("Stage: %s", stage.value)
        result = validate_exercise(data)
        if not result.ok:
            raise SchemaError(f"Invalid exercise from the generation service: {result.error}")
        draft = result.draft
        answer_key = {key: opts[0] for key, opts in draft.options.items()}

        stage = Stage.RANDOMIZING
        _log.debug("Stage: %s", stage.value)
        shuffled = shuffle_options(draft, rng or random.Random())

        stage = Stage.PROJECTING
        _log.debug("Stage: %s", stage.value)
        exercise = project_exercise(shuffled, answer_key)
    except GenerationError as e:
        _log.warning("Generation failed at %s (%s): %s", stage.value, e.kind, e.message)
        return GenerationResult.fail(e.message, e.kind)
    except Exception:
        _log.exception("Unexpected error at %s", stage.value)
        return GenerationResult.fail(GENERIC_ERROR)

    _log.info("  OK: %d blank(s), %d with details",
              len(exercise.options), len(exercise.options_detail or {}))
    return GenerationResult.ok(exercise)
