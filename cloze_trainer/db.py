from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path

from cloze_trainer.models import HistoryRecord, ValidatedExercise, WordDetail

SCHEMA = """
CREATE TABLE IF NOT EXISTS history_records (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    word_list TEXT NOT NULL,
    article TEXT NOT NULL,
    options_json TEXT NOT NULL,
    answer_key_json TEXT NOT NULL,
    options_detail_json TEXT,
    annotations_json TEXT,
    answers_json TEXT DEFAULT '{}'
);

CREATE TABLE IF NOT EXISTS word_cache (
    word TEXT PRIMARY KEY,
    phonetic TEXT,
    part_of_speech TEXT,
    meaning TEXT,
    created_at TEXT NOT NULL
);
"""

DEFAULT_MAX_HISTORY = 50


def _int_keys(d: dict) -> dict:
    """JSON object keys are always strings; blank numbers are ints."""
    return {int(k): v for k, v in d.items()}


def _row_to_record(row: sqlite3.Row) -> HistoryRecord:
    detail = json.loads(row["options_detail_json"]) if row["options_detail_json"] else None
    annotations = json.loads(row["annotations_json"]) if row["annotations_json"] else None
    return HistoryRecord(
        id=row["id"],
        created_at=row["created_at"],
        word_list=row["word_list"],
        article=row["article"],
        options=_int_keys(json.loads(row["options_json"])),
        answer_key=_int_keys(json.loads(row["answer_key_json"])),
        options_detail=_int_keys(detail) if detail else None,
        annotations=annotations or None,
        answers=_int_keys(json.loads(row["answers_json"] or "{}")),
    )


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._init_schema()

    def _init_schema(self) -> None:
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    # ── History ───────────────────────────────────────────────────────────

    def save_history(
        self,
        word_list: str,
        exercise: ValidatedExercise,
        max_records: int = DEFAULT_MAX_HISTORY,
    ) -> HistoryRecord:
        """Store a generated exercise, keeping only the newest *max_records*."""
        data = exercise.to_dict()
        record_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc).isoformat()
        self.conn.execute(
            "INSERT INTO history_records "
            "(id, created_at, word_list, article, options_json, answer_key_json, "
            "options_detail_json, annotations_json) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record_id,
                now,
                word_list,
                exercise.article,
                json.dumps(data["options"], ensure_ascii=False),
                json.dumps(data["answerKey"], ensure_ascii=False),
                json.dumps(data["optionsDetail"], ensure_ascii=False) if "optionsDetail" in data else None,
                json.dumps(data["annotations"], ensure_ascii=False) if "annotations" in data else None,
            ),
        )
        self._trim_history(max_records)
        self.conn.commit()
        return self.get_history_record(record_id)

    def _trim_history(self, max_records: int) -> None:
        self.conn.execute(
            "DELETE FROM history_records WHERE id NOT IN ("
            "SELECT id FROM history_records ORDER BY created_at DESC, rowid DESC LIMIT ?)",
            (max_records,),
        )

    def get_history(self, limit: int = DEFAULT_MAX_HISTORY) -> list[HistoryRecord]:
        rows = self.conn.execute(
            "SELECT * FROM history_records ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [_row_to_record(r) for r in rows]

    def get_history_record(self, record_id: str) -> HistoryRecord | None:
        row = self.conn.execute(
            "SELECT * FROM history_records WHERE id = ?", (record_id,)
        ).fetchone()
        return _row_to_record(row) if row else None

    def get_history_count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM history_records").fetchone()
        return row[0]

    def set_history_answers(self, record_id: str, answers: dict[int, str]) -> bool:
        cur = self.conn.execute(
            "UPDATE history_records SET answers_json = ? WHERE id = ?",
            (json.dumps(answers, ensure_ascii=False), record_id),
        )
        self.conn.commit()
        return cur.rowcount > 0

    def delete_history(self, record_id: str) -> bool:
        cur = self.conn.execute(
            "DELETE FROM history_records WHERE id = ?", (record_id,)
        )
        self.conn.commit()
        return cur.rowcount > 0

    def clear_history(self) -> int:
        cur = self.conn.execute("DELETE FROM history_records")
        self.conn.commit()
        return cur.rowcount

    # ── Word cache ────────────────────────────────────────────────────────

    def get_word_cache(self, word: str) -> WordDetail | None:
        row = self.conn.execute(
            "SELECT * FROM word_cache WHERE word = ?", (word.lower(),)
        ).fetchone()
        if not row:
            return None
        return WordDetail(
            word=row["word"],
            phonetic=row["phonetic"],
            part_of_speech=row["part_of_speech"],
            meaning=row["meaning"],
        )

    def set_word_cache(self, detail: WordDetail) -> None:
        now = datetime.now(timezone.utc).isoformat()
        self.conn.execute(
            "INSERT OR REPLACE INTO word_cache "
            "(word, phonetic, part_of_speech, meaning, created_at) VALUES (?, ?, ?, ?, ?)",
            (detail.word.lower(), detail.phonetic, detail.part_of_speech, detail.meaning, now),
        )
        self.conn.commit()
