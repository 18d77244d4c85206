from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from survey_analyzer.data.models import Question
from survey_analyzer.tools.stats import DistributionResult, percentage
from survey_analyzer.tools.subsets import SubsetResult


def format_question(question: Question, index: Optional[int] = None) -> str:
    prefix = f"{index}. " if index is not None else ""
    return f"{prefix}[{question.id}] {question.label} (Type: {question.kind.value})"


def format_structure(questions: Sequence[Question], respondent_count: int, show_options: bool = True) -> List[str]:
    lines = [
        f"Survey Structure ({len(questions)} questions, {respondent_count} respondents):",
        "-" * 80,
    ]
    for q in questions:
        lines.append(f"Question {q.id}: {q.label}")
        lines.append(f"  Type: {q.kind.value}")
        if show_options and q.known_options:
            lines.append(f"  Options: {', '.join(q.known_options)}")
    return lines


def format_option_hits(hits: Iterable[Tuple[str, str]]) -> List[str]:
    return [f"  Question {qid}: {option}" for qid, option in hits]


def format_threshold(result: DistributionResult, threshold: float) -> List[str]:
    rows = result.above_threshold(threshold)
    if not rows:
        return [f"No answers at or above {threshold:.1f}%."]
    lines = [f"Answers above {threshold:.1f}% threshold:"]
    lines.extend(f"  {opt}: {count} ({pct:.1f}%)" for opt, count, pct in rows)
    return lines


def format_options(question: Question, options: Sequence[str], limit: Optional[int] = None) -> List[str]:
    lines = [
        f"Available options for '{question.label}' (Type: {question.kind.value}):",
        f"Total options: {len(options)}",
        "",
    ]
    shown = options if limit is None else options[:limit]
    lines.extend(f"{i}. {opt}" for i, opt in enumerate(shown, start=1))
    if limit is not None and len(options) > limit:
        lines.append(f"... and {len(options) - limit} more options")
    return lines


def format_intersection(groups: Sequence[SubsetResult], survivors: Sequence[int], total: int) -> List[str]:
    label = " AND ".join(f"{g.question_id}='{g.option}'" for g in groups)
    pct = percentage(len(survivors), total)
    return [
        f"Intersection of {label}",
        f"Size: {len(survivors)} respondents ({pct:.1f}% of total)",
        f"Respondent IDs: {list(survivors[:10])}",
    ]


def format_comparison(
    a_name: str, a: DistributionResult, b_name: str, b: DistributionResult, limit: int = 10
) -> List[str]:
    lines = [f"Comparison for {a.question_id}: {a.question_label}"]
    for name, dist in ((a_name, a), (b_name, b)):
        lines.append(f"  {name} (n={dist.total_responses}):")
        for opt, count, pct in dist.items()[:limit]:
            lines.append(f"    {opt}: {count} ({pct:.1f}%)")
    return lines
