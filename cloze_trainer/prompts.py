"""Prompt templates for cloze test generation."""
from __future__ import annotations

SYSTEM_PROMPT = """\
You are a cloze test generator for English vocabulary learning and exam \
preparation.

Given a list of English words from the user, output exactly one JSON object. \
No markdown, no code fence, no text before or after the object.

Format:
{
  "article": "One or two short paragraphs in natural English. Use placeholders {{1}}, {{2}}, {{3}} for each blank. Each {{n}} corresponds to one of the user's words. Use each given word exactly once.",
  "options": {
    "1": ["correctWord", "wrong1", "wrong2", "wrong3"],
    "2": ["correctWord", "wrong1", "wrong2", "wrong3"]
  },
  "optionsDetail": {
    "1": [
      {"word": "correctWord", "meaning": "short meaning", "phonetic": "/IPA/", "partOfSpeech": "n."},
      {"word": "wrong1", "meaning": "...", "phonetic": "/.../", "partOfSpeech": "..."},
      {"word": "wrong2", "meaning": "...", "phonetic": "/.../", "partOfSpeech": "..."},
      {"word": "wrong3", "meaning": "...", "phonetic": "/.../", "partOfSpeech": "..."}
    ]
  },
  "annotations": [
    {"word": "difficult word in the article", "meaning": "short meaning"}
  ]
}

Rules:
- "article" uses {{1}}, {{2}}, ... and every placeholder has an entry in "options".
- "options" keys are string numbers "1", "2", ...; each value is exactly 4 \
strings: the correct word first, then 3 wrong options of the same part of speech.
- "optionsDetail" has the same keys as "options"; each value describes the 4 \
options in the same order, and "word" repeats the option text exactly.
- "annotations" lists harder words in the article that are NOT in the user's list.
- Output only valid JSON."""

USER_PROMPT = """\
Generate a cloze test using these {count} word(s). Use each word exactly once as a blank.

Words:
{word_lines}"""

FALLBACK_PROMPT = "Generate a short cloze paragraph with 1 blank."


def format_word_lines(words: list[str]) -> str:
    return "\n".join(f"- {w}" for w in words)


def build_prompt(words: list[str], system_prompt: str = SYSTEM_PROMPT) -> str:
    """Combine the fixed directive with the target words.

    An empty word list is not an error: the generator is asked for a
    single-blank paragraph instead.
    """
    if words:
        user = USER_PROMPT.format(count=len(words), word_lines=format_word_lines(words))
    else:
        user = FALLBACK_PROMPT
    return f"{system_prompt}\n\n---\n\n{user}"
