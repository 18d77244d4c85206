from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, NamedTuple, Optional, Sequence, Tuple

import pandas as pd

from survey_analyzer.app.errors import InvalidQuestionType
from survey_analyzer.data.dataset import SurveyDataset
from survey_analyzer.data.models import QuestionKind, answer_options, is_missing


# Kinds with frequency semantics. A new kind must be added here deliberately.
FREQUENCY_KINDS: FrozenSet[QuestionKind] = frozenset(
    {
        QuestionKind.SINGLE_CHOICE,
        QuestionKind.MULTIPLE_CHOICE,
        QuestionKind.TEXT,
        QuestionKind.NUMERIC,
    }
)


class OptionCount(NamedTuple):
    count: int
    percentage: float


def percentage(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return count * 100.0 / total


@dataclass(frozen=True)
class DistributionResult:
    """
    Frequency table of one question's answers.

    Percentages are relative to total_responses (respondents with a
    non-missing answer), so multiple-choice percentages do not sum to 100.
    """

    question_id: str
    question_label: str
    kind: QuestionKind
    counts: Dict[str, OptionCount] = field(default_factory=dict)
    total_responses: int = 0

    def items(self) -> List[Tuple[str, int, float]]:
        # Count descending, ties by option ascending.
        rows = [(opt, oc.count, oc.percentage) for opt, oc in self.counts.items()]
        rows.sort(key=lambda r: (-r[1], r[0]))
        return rows

    def most_popular(self) -> Optional[Tuple[str, int, float]]:
        rows = self.items()
        return rows[0] if rows else None

    def above_threshold(self, threshold: float) -> List[Tuple[str, int, float]]:
        return [r for r in self.items() if r[2] >= threshold]

    def total_option_count(self) -> int:
        return sum(oc.count for oc in self.counts.values())

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.items(), columns=["option", "count", "percentage"])

    def display(self) -> str:
        lines = [
            f"Question {self.question_id}: {self.question_label}",
            f"Type: {self.kind.value}",
            f"Total Responses: {self.total_responses}",
        ]
        if self.kind.is_multi_value:
            lines.append("Note: Percentages are based on total responses, not total options selected")
        lines.append("Distribution:")
        for option, count, pct in self.items():
            lines.append(f"  {option}: {count} ({pct:.1f}%)")
        return "\n".join(lines) + "\n"


def compute_distribution(
    dataset: SurveyDataset,
    question_id: str,
    respondent_ids: Optional[Sequence[int]] = None,
) -> DistributionResult:
    """
    Count answers to question_id, optionally restricted to respondent_ids.

    Absent, blank and "NA" answers are skipped and do not count toward
    total_responses. Multiple-choice answers contribute one count per option
    but only one response.
    """
    question = dataset.questions.lookup(question_id)
    if question.kind not in FREQUENCY_KINDS:
        raise InvalidQuestionType(question_id, question.kind)

    counts: Counter[str] = Counter()
    total = 0
    for _, value in dataset.responses.answers(question_id, respondent_ids):
        if is_missing(value):
            continue
        total += 1
        counts.update(answer_options(question.kind, value))

    return DistributionResult(
        question_id=question.id,
        question_label=question.label,
        kind=question.kind,
        counts={opt: OptionCount(c, percentage(c, total)) for opt, c in counts.items()},
        total_responses=total,
    )


def question_options(dataset: SurveyDataset, question_id: str) -> List[str]:
    # Sorted unique options observed for any kind, computed from the answers.
    question = dataset.questions.lookup(question_id)
    options = set()
    for _, value in dataset.responses.answers(question_id):
        options.update(answer_options(question.kind, value))
    return sorted(options)


def crosstab(dataset: SurveyDataset, row_question_id: str, column_question_id: str) -> pd.DataFrame:
    """
    Raw co-occurrence counts between two questions.

    Only respondents answering both questions are counted; multiple-choice
    answers are exploded into their options first.
    """
    row_q = dataset.questions.lookup(row_question_id)
    col_q = dataset.questions.lookup(column_question_id)

    pairs: List[Tuple[str, str]] = []
    for record in dataset.responses:
        row_opts = answer_options(row_q.kind, record.get(row_q.id))
        col_opts = answer_options(col_q.kind, record.get(col_q.id))
        for r in row_opts:
            for c in col_opts:
                pairs.append((r, c))

    if not pairs:
        return pd.DataFrame(dtype=int)

    df = pd.DataFrame(pairs, columns=[row_q.id, col_q.id])
    table = pd.crosstab(df[row_q.id], df[col_q.id])
    table.columns.name = col_q.id
    table.index.name = row_q.id
    return table
