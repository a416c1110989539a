"""CLI entry point for cloze-trainer.

Usage:
  python -m cloze_trainer serve [--host HOST] [--port PORT]
  python -m cloze_trainer generate --words "abandon, brisk, candid"
  python -m cloze_trainer history [--limit N]
  python -m cloze_trainer lookup WORD
"""
from __future__ import annotations

import asyncio
import json
import sys


def main():
    args = sys.argv[1:]
    command = args[0] if args else "serve"

    if command == "serve":
        _serve(args[1:])
    elif command == "generate":
        _generate(args[1:])
    elif command == "history":
        _history(args[1:])
    elif command == "lookup":
        _lookup(args[1:])
    else:
        print(f"Unknown command: {command}")
        print("Commands: serve, generate, history, lookup")
        sys.exit(1)


def _parse_flag(args: list[str], name: str, default: str) -> str:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return default


def _serve(args: list[str]):
    import uvicorn

    port = int(_parse_flag(args, "--port", "8765"))
    host = _parse_flag(args, "--host", "127.0.0.1")
    print(f"Starting Cloze Trainer on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")
    uvicorn.run(
        "cloze_trainer.app:app",
        host=host,
        port=port,
        reload=False,
        timeout_graceful_shutdown=5,
    )


def _generate(args: list[str]):
    from cloze_trainer.cloze_generator import generate_cloze_test
    from cloze_trainer.config import generation_config, load_settings
    from cloze_trainer.db import Database
    from cloze_trainer.providers.llm_deepseek import DeepSeekProvider

    words = _parse_flag(args, "--words", "")
    settings = load_settings()
    llm = DeepSeekProvider(generation_config(settings))

    print(f"Generating cloze test using {llm.name()}...", file=sys.stderr)
    result = asyncio.run(generate_cloze_test(words, llm))
    payload = result.to_dict()

    if result.success:
        db = Database(settings.db_full_path)
        record = db.save_history(words, result.exercise, settings.max_history)
        payload["historyId"] = record.id
        db.close()

    print(json.dumps(payload, indent=2, ensure_ascii=False))
    if not result.success:
        sys.exit(1)


def _history(args: list[str]):
    from cloze_trainer.config import load_settings
    from cloze_trainer.db import Database

    limit = int(_parse_flag(args, "--limit", "10"))
    settings = load_settings()
    db = Database(settings.db_full_path)
    records = db.get_history(limit=limit)
    if not records:
        print("No history yet.")
    for r in records:
        words = " ".join(r.word_list.split())[:50]
        answered = f"{len(r.answers)}/{len(r.options)} answered"
        print(f"{r.created_at[:19]}  {r.id[:8]}  {answered:14s} {words}")
    db.close()


def _lookup(args: list[str]):
    from cloze_trainer.config import load_settings
    from cloze_trainer.db import Database
    from cloze_trainer.dictionary import lookup_word

    if not args:
        print("Usage: python -m cloze_trainer lookup WORD")
        sys.exit(1)

    settings = load_settings()
    db = Database(settings.db_full_path)
    detail = asyncio.run(lookup_word(args[0], db, settings))
    db.close()
    if detail is None:
        print(f"No entry found for '{args[0]}'.")
        sys.exit(1)
    print(f"{detail.word}  {detail.phonetic}  ({detail.part_of_speech})")
    print(detail.meaning)


if __name__ == "__main__":
    main()
