from __future__ import annotations

from dataclasses import dataclass, field

OPTION_COUNT = 4


@dataclass
class OptionDetail:
    word: str
    meaning: str
    phonetic: str
    part_of_speech: str | None = None

    def to_dict(self) -> dict:
        d = {"word": self.word, "meaning": self.meaning, "phonetic": self.phonetic}
        if self.part_of_speech:
            d["partOfSpeech"] = self.part_of_speech
        return d

    @classmethod
    def from_dict(cls, d: dict) -> OptionDetail:
        return cls(
            word=d["word"],
            meaning=d["meaning"],
            phonetic=d["phonetic"],
            part_of_speech=d.get("partOfSpeech"),
        )


@dataclass
class WordAnnotation:
    word: str
    meaning: str

    def to_dict(self) -> dict:
        return {"word": self.word, "meaning": self.meaning}


@dataclass
class ExerciseDraft:
    """Schema-checked completion, still keyed by the generator's string keys.

    ``options[key][0]`` is the correct answer until the options are shuffled.
    """
    article: str
    options: dict[str, list[str]]
    options_detail: dict[str, list[OptionDetail]] = field(default_factory=dict)
    annotations: list[WordAnnotation] = field(default_factory=list)


@dataclass
class ValidationResult:
    draft: ExerciseDraft | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.draft is not None


@dataclass(frozen=True)
class ValidatedExercise:
    article: str
    options: dict[int, tuple[str, str, str, str]]
    answer_key: dict[int, str]
    options_detail: dict[int, tuple[OptionDetail, ...]] | None = None
    annotations: list[WordAnnotation] | None = None

    def to_dict(self) -> dict:
        d = {
            "article": self.article,
            "options": {n: list(opts) for n, opts in self.options.items()},
            "answerKey": dict(self.answer_key),
        }
        if self.options_detail:
            d["optionsDetail"] = {
                n: [od.to_dict() for od in details]
                for n, details in self.options_detail.items()
            }
        if self.annotations:
            d["annotations"] = [a.to_dict() for a in self.annotations]
        return d


@dataclass
class GenerationResult:
    success: bool
    exercise: ValidatedExercise | None = None
    error: str | None = None
    error_kind: str | None = None

    @classmethod
    def ok(cls, exercise: ValidatedExercise) -> GenerationResult:
        return cls(success=True, exercise=exercise)

    @classmethod
    def fail(cls, error: str, kind: str = "generation") -> GenerationResult:
        return cls(success=False, error=error, error_kind=kind)

    def to_dict(self) -> dict:
        if not self.success:
            return {"success": False, "error": self.error}
        return {"success": True, **self.exercise.to_dict()}


@dataclass
class WordDetail:
    word: str
    phonetic: str
    part_of_speech: str
    meaning: str

    def to_dict(self) -> dict:
        return {
            "word": self.word,
            "phonetic": self.phonetic,
            "partOfSpeech": self.part_of_speech,
            "meaning": self.meaning,
        }


@dataclass
class HistoryRecord:
    id: str
    created_at: str
    word_list: str
    article: str
    options: dict[int, list[str]]
    answer_key: dict[int, str]
    options_detail: dict[int, list[dict]] | None = None
    annotations: list[dict] | None = None
    answers: dict[int, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "createdAt": self.created_at,
            "wordList": self.word_list,
            "article": self.article,
            "options": self.options,
            "answerKey": self.answer_key,
            "answers": self.answers,
        }
        if self.options_detail:
            d["optionsDetail"] = self.options_detail
        if self.annotations:
            d["annotations"] = self.annotations
        return d


def grade_answers(answer_key: dict[int, str], answers: dict[int, str]) -> dict[int, str]:
    """Mark each answered blank ``"correct"`` or ``"wrong"``.

    Blanks without an answer are left out; answers for unknown blanks are
    always wrong.
    """
    status: dict[int, str] = {}
    for n, chosen in answers.items():
        if chosen is None:
            continue
        status[n] = "correct" if answer_key.get(n) == chosen else "wrong"
    return status
