# question_bank.py
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

import orjson

from models import Question

logger = logging.getLogger(__name__)

ANSWER_TYPES = {"yes_no", "scale_0_5"}
REQUIRED_FIELDS = ("id", "normative", "block", "text")


class QuestionBank:
    """Ordered, read-only collection of questions."""

    def __init__(self, questions: Iterable[Question] = ()):
        self._questions = tuple(questions)
        self._by_id = {q.id: q for q in self._questions}

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    def has_questions(self) -> bool:
        return bool(self._questions)

    def get(self, question_id: str) -> Question | None:
        return self._by_id.get(question_id)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)

    def __len__(self) -> int:
        return len(self._questions)


def _parse_weight(raw) -> int:
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
        return 1
    try:
        return max(1, int(float(raw)))
    except (TypeError, ValueError, OverflowError):
        return 1


def _parse_entry(entry) -> Question | None:
    if not isinstance(entry, dict):
        return None
    for field in REQUIRED_FIELDS:
        value = entry.get(field)
        if not isinstance(value, str) or not value:
            return None

    answer_type = entry.get("answerType")
    if answer_type not in ANSWER_TYPES:
        answer_type = "yes_no"

    return Question(
        id=entry["id"],
        normative=entry["normative"],
        block=entry["block"],
        text=entry["text"],
        weight=_parse_weight(entry.get("weight", 1)),
        answer_type=answer_type,
    )


def parse_question_bank(raw: str | bytes, allowed_normatives: Iterable[str] | None = None) -> QuestionBank:
    """
    Build a bank from the JSON document `{"questions": [...]}`.

    Malformed input yields an empty bank instead of an error. Entries missing
    one of id/normative/block/text are skipped. A repeated id keeps the first
    record; when `allowed_normatives` is given, other regulations are dropped.
    """
    try:
        data = orjson.loads(raw)
    except (orjson.JSONDecodeError, TypeError):
        logger.warning("Question bank is not valid JSON; using an empty bank.")
        return QuestionBank()

    if not isinstance(data, dict) or not isinstance(data.get("questions"), list):
        logger.warning("Question bank has no 'questions' list; using an empty bank.")
        return QuestionBank()

    allowed = set(allowed_normatives) if allowed_normatives is not None else None
    questions: list[Question] = []
    seen: set[str] = set()
    skipped = 0

    for entry in data["questions"]:
        q = _parse_entry(entry)
        if q is None:
            skipped += 1
            continue
        if q.id in seen:
            logger.warning("Duplicate question id %r ignored.", q.id)
            continue
        if allowed is not None and q.normative not in allowed:
            logger.warning("Question %r has unsupported regulation %r; ignored.", q.id, q.normative)
            continue
        seen.add(q.id)
        questions.append(q)

    if skipped:
        logger.debug("Skipped %d malformed question entries.", skipped)
    return QuestionBank(questions)


def load_question_bank(path: str | Path, allowed_normatives: Iterable[str] | None = None) -> QuestionBank:
    try:
        raw = Path(path).read_bytes()
    except OSError as e:
        logger.warning("Question bank not readable (%s); using an empty bank.", e.__class__.__name__)
        return QuestionBank()
    bank = parse_question_bank(raw, allowed_normatives)
    logger.info("Loaded %d questions.", len(bank))
    return bank
