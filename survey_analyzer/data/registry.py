# survey_analyzer/data/registry.py
from __future__ import annotations

import re
from typing import Dict, Iterable, Iterator, Pattern, Tuple

from .models import Question
from survey_analyzer.app.errors import QuestionNotFound


def compile_term(term: str, regex: bool = False) -> Pattern[str]:
    """
    Build a case-insensitive matcher for a search term.

    Plain substring semantics by default. With regex=True the term is used as
    a pattern, and a malformed pattern falls back to its escaped literal form.
    """
    if not regex:
        return re.compile(re.escape(term), re.IGNORECASE)
    try:
        return re.compile(term, re.IGNORECASE)
    except re.error:
        return re.compile(re.escape(term), re.IGNORECASE)


class QuestionRegistry:
    """
    Ordered, read-only collection of question definitions keyed by column id.
    """

    def __init__(self, questions: Iterable[Question]):
        ordered: Dict[str, Question] = {}
        for q in questions:
            if q.id in ordered:
                raise ValueError(f"Duplicate question id: {q.id}")
            ordered[q.id] = q
        self._by_id = ordered
        self._ordered: Tuple[Question, ...] = tuple(ordered.values())

    def __len__(self) -> int:
        return len(self._ordered)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._ordered)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._by_id

    def lookup(self, question_id: str) -> Question:
        try:
            return self._by_id[question_id]
        except KeyError:
            raise QuestionNotFound(question_id) from None

    def all(self) -> Tuple[Question, ...]:
        return self._ordered

    def ids(self) -> Tuple[str, ...]:
        return tuple(self._by_id)

    def search(self, term: str, regex: bool = False, include_ids: bool = False) -> Iterator[Question]:
        # Lazy, case-insensitive match on the label; include_ids also tries the column id.
        pattern = compile_term(term, regex=regex)
        for q in self._ordered:
            if pattern.search(q.label) or (include_ids and pattern.search(q.id)):
                yield q
