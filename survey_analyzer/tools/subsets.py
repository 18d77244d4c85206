from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import FrozenSet, List, Tuple

from survey_analyzer.app.errors import OptionNotFound
from survey_analyzer.data.dataset import SurveyDataset
from survey_analyzer.data.models import Question
from survey_analyzer.tools.stats import percentage, question_options


@dataclass(frozen=True)
class SubsetResult:
    question_id: str
    option: str
    respondent_ids: Tuple[int, ...] = field(default_factory=tuple)
    total_respondents: int = 0

    @cached_property
    def _id_set(self) -> FrozenSet[int]:
        return frozenset(self.respondent_ids)

    def __len__(self) -> int:
        return len(self.respondent_ids)

    def size(self) -> int:
        return len(self.respondent_ids)

    def percentage_of_total(self) -> float:
        return percentage(self.size(), self.total_respondents)

    def contains_respondent(self, respondent_id: int) -> bool:
        return respondent_id in self._id_set

    def intersect(self, other: "SubsetResult") -> List[int]:
        return intersect(self, other)

    def display(self, preview: int = 10) -> str:
        shown = list(self.respondent_ids[:preview])
        return (
            f"Subset for Question {self.question_id} - Option '{self.option}'\n"
            f"Size: {self.size()} respondents ({self.percentage_of_total():.1f}% of total)\n"
            f"Respondent IDs: {shown}"
        )


def matches(question: Question, value: str, option: str) -> bool:
    # Multiple choice uses substring containment ("Java" also matches "JavaScript");
    # every other kind needs exact equality with the stored value.
    if question.kind.is_multi_value:
        return option in value
    return value == option


def create_subset(
    dataset: SurveyDataset,
    question_id: str,
    option: str,
    strict: bool = False,
) -> SubsetResult:
    """
    Respondents whose answer to question_id matches option.

    A zero-match result is a valid empty subset. With strict=True an option
    never observed for the question raises OptionNotFound instead.
    """
    question = dataset.questions.lookup(question_id)
    if strict and option not in question_options(dataset, question_id):
        raise OptionNotFound(question_id, option)

    ids = tuple(
        rid
        for rid, value in dataset.responses.answers(question_id)
        if matches(question, value, option)
    )
    return SubsetResult(
        question_id=question.id,
        option=option,
        respondent_ids=ids,
        total_respondents=dataset.respondent_count,
    )


def intersect(a: SubsetResult, b: SubsetResult) -> List[int]:
    # Ids present in both, in a's order, duplicates collapsed.
    other = b._id_set
    seen = set()
    out: List[int] = []
    for rid in a.respondent_ids:
        if rid in other and rid not in seen:
            seen.add(rid)
            out.append(rid)
    return out


def intersect_all(*subsets: SubsetResult) -> List[int]:
    # Survivor set across any number of subsets, in the first subset's order.
    if not subsets:
        return []
    survivors = list(dict.fromkeys(subsets[0].respondent_ids))
    for s in subsets[1:]:
        keep = s._id_set
        survivors = [rid for rid in survivors if rid in keep]
        if not survivors:
            break
    return survivors
