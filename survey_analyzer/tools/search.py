from __future__ import annotations

from typing import List, Tuple

from survey_analyzer.data.models import Question
from survey_analyzer.data.registry import QuestionRegistry, compile_term


def search_questions(
    registry: QuestionRegistry, term: str, regex: bool = False, include_ids: bool = False
) -> List[Question]:
    return list(registry.search(term, regex=regex, include_ids=include_ids))


def search_options(registry: QuestionRegistry, term: str, regex: bool = False) -> List[Tuple[str, str]]:
    """
    (question_id, option) pairs whose known option contains term.

    Case-insensitive; an empty term matches every known option.
    """
    pattern = compile_term(term, regex=regex)
    results: List[Tuple[str, str]] = []
    for question in registry:
        for option in question.known_options:
            if pattern.search(option):
                results.append((question.id, option))
    return results
