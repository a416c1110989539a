"""FastAPI application with all routes."""
from __future__ import annotations

import logging

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request

from cloze_trainer.cloze_generator import generate_cloze_test
from cloze_trainer.config import Settings, generation_config, load_settings, save_settings
from cloze_trainer.db import Database
from cloze_trainer.dictionary import lookup_word
from cloze_trainer.models import grade_answers
from cloze_trainer.providers.llm_deepseek import DeepSeekProvider

app = FastAPI(title="Cloze Trainer")

# Global state (initialized in startup)
_db: Database | None = None
_settings: Settings | None = None

_history_log = logging.getLogger("cloze_trainer.history")


def get_db() -> Database:
    assert _db is not None
    return _db


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


def _get_llm():
    # API key is re-read from the environment for every request
    return DeepSeekProvider(generation_config(get_settings()))


@app.on_event("startup")
async def startup():
    global _db, _settings
    if _db is not None:
        return  # Already initialized (e.g. by tests)
    _settings = load_settings()
    _db = Database(_settings.db_full_path)


@app.on_event("shutdown")
async def shutdown():
    if _db:
        _db.close()


def _parse_answers(raw: object) -> dict[int, str]:
    if not isinstance(raw, dict):
        raise HTTPException(400, "answers must be an object")
    answers = {}
    for k, v in raw.items():
        try:
            n = int(k)
        except (TypeError, ValueError):
            raise HTTPException(400, f"Invalid blank number: {k!r}")
        if v is not None:
            answers[n] = str(v)
    return answers


# ── API: Generate ─────────────────────────────────────────────────────────

@app.post("/api/generate")
async def api_generate(request: Request):
    body = await request.json() if await request.body() else {}
    if not isinstance(body, dict):
        raise HTTPException(400, "Request body must be a JSON object")
    words = body.get("words", "")
    if not isinstance(words, str):
        raise HTTPException(400, "words must be a string")

    result = await generate_cloze_test(words, _get_llm())
    payload = result.to_dict()
    if result.success:
        record = get_db().save_history(words, result.exercise, get_settings().max_history)
        _history_log.info("Saved history record %s", record.id)
        payload["historyId"] = record.id
    return payload


# ── API: History ──────────────────────────────────────────────────────────

@app.get("/api/history")
async def api_history(limit: int = 50):
    return {"records": [r.to_dict() for r in get_db().get_history(limit=limit)]}


@app.get("/api/history/{record_id}")
async def api_history_record(record_id: str):
    record = get_db().get_history_record(record_id)
    if record is None:
        raise HTTPException(404, "History record not found")
    return record.to_dict()


@app.put("/api/history/{record_id}/answers")
async def api_history_answers(record_id: str, request: Request):
    body = await request.json()
    if not isinstance(body, dict):
        raise HTTPException(400, "Request body must be a JSON object")
    answers = _parse_answers(body.get("answers", {}))
    db = get_db()
    record = db.get_history_record(record_id)
    if record is None:
        raise HTTPException(404, "History record not found")
    db.set_history_answers(record_id, answers)
    status = grade_answers(record.answer_key, answers)
    return {
        "id": record_id,
        "answers": answers,
        "status": status,
        "correct": sum(1 for s in status.values() if s == "correct"),
        "total": len(record.options),
    }


@app.delete("/api/history/{record_id}")
async def api_history_delete(record_id: str):
    if not get_db().delete_history(record_id):
        raise HTTPException(404, "History record not found")
    return {"id": record_id, "deleted": True}


@app.delete("/api/history")
async def api_history_clear():
    return {"cleared": get_db().clear_history()}


# ── API: Word lookup ──────────────────────────────────────────────────────

@app.get("/api/word/{word}")
async def api_word(word: str):
    detail = await lookup_word(word, get_db(), get_settings())
    if detail is None:
        raise HTTPException(404, f"No dictionary entry for {word!r}")
    return detail.to_dict()


# ── API: Settings ─────────────────────────────────────────────────────────

@app.get("/api/settings")
async def api_get_settings():
    return get_settings().to_dict()


@app.put("/api/settings")
async def api_update_settings(request: Request):
    body = await request.json()
    if not isinstance(body, dict):
        raise HTTPException(400, "Request body must be a JSON object")
    s = get_settings()
    known = {f.name for f in Settings.__dataclass_fields__.values()}
    for k, v in body.items():
        if k in known:
            setattr(s, k, v)
    save_settings(s)
    return s.to_dict()
