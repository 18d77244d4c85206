# survey_analyzer/data/dataset.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .models import Question, QuestionKind, answer_options
from .registry import QuestionRegistry
from .responses import ResponseTable

logger = logging.getLogger(__name__)

_OPTION_KINDS = {QuestionKind.SINGLE_CHOICE, QuestionKind.MULTIPLE_CHOICE}


@dataclass(frozen=True)
class SurveyDataset:
    """
    Immutable snapshot handed to every engine: questions + respondent answers.
    """

    questions: QuestionRegistry
    responses: ResponseTable
    source: Optional[str] = None

    @property
    def respondent_count(self) -> int:
        return self.responses.respondent_count

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @classmethod
    def build(
        cls,
        questions: Sequence[Question],
        records: Iterable[Mapping[str, str]],
        kind_overrides: Optional[Mapping[str, QuestionKind]] = None,
        source: Optional[str] = None,
    ) -> "SurveyDataset":
        """
        Apply kind overrides and populate known options from the answers.

        Known options are collected for choice questions only; free text and
        numeric answers are not option sets.
        """
        table = ResponseTable(records)

        resolved: List[Question] = []
        for q in questions:
            if kind_overrides and q.id in kind_overrides:
                logger.debug("Kind override for %s: %s -> %s", q.id, q.kind.value, kind_overrides[q.id].value)
                q = q.with_kind(kind_overrides[q.id])
            resolved.append(q)

        unknown = set(kind_overrides or {}) - {q.id for q in resolved}
        if unknown:
            logger.warning("Ignoring kind overrides for unknown questions: %s", sorted(unknown))

        options: Dict[str, Dict[str, None]] = {q.id: {} for q in resolved if q.kind in _OPTION_KINDS}
        kinds = {q.id: q.kind for q in resolved}
        for record in table:
            for qid, value in record.items():
                bucket = options.get(qid)
                if bucket is None:
                    continue
                for opt in answer_options(kinds[qid], value):
                    bucket.setdefault(opt, None)

        final = [
            q.with_options(options[q.id]) if q.id in options else q
            for q in resolved
        ]
        return cls(questions=QuestionRegistry(final), responses=table, source=source)
