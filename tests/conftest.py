"""Shared test fixtures."""
from __future__ import annotations

import json

import pytest

from cloze_trainer.db import Database
from cloze_trainer.models import OptionDetail, ValidatedExercise, WordAnnotation


@pytest.fixture
def tmp_db(tmp_path):
    """Create a fresh temporary database."""
    db = Database(tmp_path / "test.db")
    yield db
    db.close()


def _detail(word, meaning, phonetic, pos="adj."):
    return {"word": word, "meaning": meaning, "phonetic": phonetic, "partOfSpeech": pos}


@pytest.fixture
def completion_data():
    """A well-formed completion with three blanks, details and annotations."""
    return {
        "article": (
            "The {{1}} stranger gave a {{2}} answer, and the crowd grew "
            "{{3}} as the storm approached the harbour."
        ),
        "options": {
            "1": ["enigmatic", "candid", "frugal", "verbose"],
            "2": ["terse", "lavish", "fragile", "vivid"],
            "3": ["restless", "serene", "humble", "opaque"],
        },
        "optionsDetail": {
            "1": [
                _detail("enigmatic", "mysterious", "/ˌenɪɡˈmætɪk/"),
                _detail("candid", "frank", "/ˈkændɪd/"),
                _detail("frugal", "thrifty", "/ˈfruːɡl/"),
                _detail("verbose", "wordy", "/vɜːˈbəʊs/"),
            ],
            "2": [
                _detail("terse", "brief", "/tɜːs/"),
                _detail("lavish", "generous", "/ˈlævɪʃ/"),
                _detail("fragile", "easily broken", "/ˈfrædʒaɪl/"),
                _detail("vivid", "bright", "/ˈvɪvɪd/"),
            ],
            "3": [
                _detail("restless", "uneasy", "/ˈrestləs/"),
                _detail("serene", "calm", "/səˈriːn/"),
                _detail("humble", "modest", "/ˈhʌmbl/"),
                _detail("opaque", "not transparent", "/əʊˈpeɪk/"),
            ],
        },
        "annotations": [
            {"word": "harbour", "meaning": "a sheltered port"},
        ],
    }


@pytest.fixture
def completion_text(completion_data):
    return json.dumps(completion_data, ensure_ascii=False)


@pytest.fixture
def sample_exercise():
    """A projected exercise, as handed to callers."""
    return ValidatedExercise(
        article="She was {{1}} about the plan, but {{2}} in her praise.",
        options={
            1: ("candid", "sanguine", "frugal", "terse"),
            2: ("lavish", "verbose", "opaque", "humble"),
        },
        answer_key={1: "sanguine", 2: "lavish"},
        options_detail={
            1: (
                OptionDetail("candid", "frank", "/ˈkændɪd/", "adj."),
                OptionDetail("sanguine", "optimistic", "/ˈsæŋɡwɪn/", "adj."),
                OptionDetail("frugal", "thrifty", "/ˈfruːɡl/"),
                OptionDetail("terse", "brief", "/tɜːs/"),
            ),
        },
        annotations=[WordAnnotation("praise", "approval")],
    )
