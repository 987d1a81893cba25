from collections.abc import Mapping

from engine import normalize_answer
from models import AnswerValue, PromptContext, ScoreResult
from prompts import (
    PROMPT_ANSWERS_HEADER, PROMPT_CONTEXT_HEADER, PROMPT_INSTRUCTIONS, PROMPT_SCORES_HEADER,
)
from question_bank import QuestionBank


def _fmt_pct(pct: float) -> str:
    return f"{pct:g}%"


def build_ai_prompt(
    context: PromptContext,
    scores: ScoreResult,
    answers: Mapping[str, AnswerValue],
    bank: QuestionBank,
) -> str:
    """
    Render the anonymized summary sent to the AI provider.

    The context only carries the alias, never the company name or tax id.
    No PII check happens here; run the result through PiiScrubber first.
    """
    lines = [
        PROMPT_CONTEXT_HEADER,
        f"- Alias: {context.company_alias}",
        f"- Company type: {context.company_type}",
        f"- Company size (employees): {context.company_size}",
        f"- Selected regulations: {', '.join(context.normatives)}",
        "",
        PROMPT_SCORES_HEADER,
    ]

    for normative, pct in scores.normatives.items():
        lines.append(f"* {normative}: {_fmt_pct(pct)}")
        for block, block_pct in scores.blocks.get(normative, {}).items():
            lines.append(f"  - {block}: {_fmt_pct(block_pct)}")

    lines += ["", PROMPT_ANSWERS_HEADER]
    for q in bank:
        if q.id not in answers:
            continue
        score = normalize_answer(q.answer_type, answers[q.id])
        if score is None:
            continue
        lines.append(f"- {q.id}: {score:.2f}")

    lines += ["", PROMPT_INSTRUCTIONS]
    return "\n".join(lines)
