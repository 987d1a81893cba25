# engine.py
import math
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal

from models import AnsweredQuestion, AnswerValue, Question, ScoreResult, TodoItem
from prompts import ACTION_TEMPLATE, DEFAULT_ACTION, REGULATION_ACTIONS
from question_bank import QuestionBank

TRUTHY = {"1", "true", "on", "yes"}
GAP_THRESHOLD = 0.01


# ---------- Answer normalization ----------
def _as_number(value: AnswerValue) -> float | None:
    """Return a finite float for int/float values or numeric strings; None otherwise."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _is_truthy(value: AnswerValue) -> bool:
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() in TRUTHY


def normalize_answer(answer_type: str, value: AnswerValue) -> float | None:
    """
    Map a raw answer to [0, 1].

    scale_0_5 -> value / 5, clamped (non-numeric counts as 0)
    yes_no    -> 1.0 for a numeric 1 or a truthy string, else 0.0
    None      -> None; the question is left out of every total
    """
    if value is None:
        return None
    number = _as_number(value)
    if answer_type == "scale_0_5":
        if number is None:
            return 0.0
        return max(0.0, min(1.0, number / 5.0))
    if number is not None:
        return 1.0 if int(number) == 1 else 0.0
    return 1.0 if _is_truthy(value) else 0.0


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _pct(achieved: float, maximum: float) -> float:
    """Percentage to two decimals, halves rounded away from zero."""
    if maximum <= 0:
        return 0.0
    pct = Decimal(repr(achieved / maximum * 100))
    return float(pct.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _display_number(value: AnswerValue) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def empty_scores(normatives: Iterable[str]) -> ScoreResult:
    """Zero scores for each selected regulation, used when no bank could be loaded."""
    normatives = list(dict.fromkeys(normatives))
    return ScoreResult(
        normatives={n: 0.0 for n in normatives},
        blocks={n: {} for n in normatives},
    )


def suggest_action(question: Question) -> str:
    prefix = REGULATION_ACTIONS.get(question.normative, DEFAULT_ACTION)
    return ACTION_TEMPLATE.format(prefix=prefix, block=question.block, question=question.text)


class ComplianceEngine:
    def __init__(self, bank: QuestionBank):
        self.bank = bank

    def has_questions(self) -> bool:
        return self.bank.has_questions()

    def _answered(self, answers: Mapping[str, AnswerValue]) -> Iterable[tuple[Question, float]]:
        for q in self.bank:
            if q.id not in answers:
                continue
            score = normalize_answer(q.answer_type, answers[q.id])
            if score is None:
                continue
            yield q, score

    def select_questions(self, normatives: Iterable[str], limit: int) -> list[Question]:
        """Highest weight first, ties by id, capped at `limit` (at least one)."""
        wanted = set(normatives)
        pool = [q for q in self.bank if q.normative in wanted]
        pool.sort(key=lambda q: (-q.weight, q.id))
        return pool[:max(1, limit)]

    def score_answers(self, answers: Mapping[str, AnswerValue]) -> ScoreResult:
        norm_totals: dict[str, list[float]] = {}
        block_totals: dict[str, dict[str, list[float]]] = {}

        for q, score in self._answered(answers):
            weight = float(q.weight)
            achieved = score * weight

            totals = norm_totals.setdefault(q.normative, [0.0, 0.0])
            totals[0] += achieved
            totals[1] += weight

            totals = block_totals.setdefault(q.normative, {}).setdefault(q.block, [0.0, 0.0])
            totals[0] += achieved
            totals[1] += weight

        return ScoreResult(
            normatives={n: _pct(a, m) for n, (a, m) in norm_totals.items()},
            blocks={
                n: {b: _pct(a, m) for b, (a, m) in blocks.items()}
                for n, blocks in block_totals.items()
            },
        )

    def build_todo(self, answers: Mapping[str, AnswerValue]) -> list[TodoItem]:
        items: list[TodoItem] = []
        for q, score in self._answered(answers):
            gap = 1.0 - score
            if gap <= GAP_THRESHOLD:
                continue
            priority = max(1, min(5, _round_half_up(gap * q.weight)))
            items.append(TodoItem(
                normative=q.normative,
                block=q.block,
                priority=priority,
                question=q.text,
                action=suggest_action(q),
            ))
        items.sort(key=lambda it: (-it.priority, it.normative, it.block))
        return items

    def answered_questions(self, answers: Mapping[str, AnswerValue]) -> list[AnsweredQuestion]:
        """Question text next to the answer as the user gave it, for the report."""
        rows: list[AnsweredQuestion] = []
        for q in self.bank:
            if q.id not in answers or answers[q.id] is None:
                continue
            value = answers[q.id]
            if _as_number(value) is not None:
                shown = _display_number(value)
            else:
                shown = "Yes" if _is_truthy(value) else "No"
            rows.append(AnsweredQuestion(
                id=q.id, normative=q.normative, block=q.block, text=q.text, answer=shown,
            ))
        return rows
