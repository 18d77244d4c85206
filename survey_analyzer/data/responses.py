# survey_analyzer/data/responses.py
from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional, Sequence, Tuple


AnswerRecord = Mapping[str, str]


class ResponseTable:
    """
    Ordered, read-only respondent records.

    Respondent ids are the dense 0-based row ordinals of ingestion order. A
    record holds only the questions the respondent answered; a missing answer
    is an absent key.
    """

    def __init__(self, records: Iterable[Mapping[str, str]]):
        self._records: Tuple[AnswerRecord, ...] = tuple(
            MappingProxyType(dict(r)) for r in records
        )

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[AnswerRecord]:
        return iter(self._records)

    @property
    def respondent_count(self) -> int:
        return len(self._records)

    def record(self, respondent_id: int) -> AnswerRecord:
        if respondent_id < 0 or respondent_id >= len(self._records):
            raise IndexError(f"Respondent id out of range: {respondent_id}")
        return self._records[respondent_id]

    def value(self, respondent_id: int, question_id: str) -> Optional[str]:
        return self.record(respondent_id).get(question_id)

    def answers(
        self,
        question_id: str,
        respondent_ids: Optional[Sequence[int]] = None,
    ) -> Iterator[Tuple[int, str]]:
        """
        Yield (respondent_id, raw_value) for respondents holding a value for
        question_id, in respondent order (or in the order of respondent_ids).
        """
        if respondent_ids is None:
            for rid, rec in enumerate(self._records):
                v = rec.get(question_id)
                if v is not None:
                    yield rid, v
            return

        seen = set()
        for rid in respondent_ids:
            if rid in seen or rid < 0 or rid >= len(self._records):
                continue
            seen.add(rid)
            v = self._records[rid].get(question_id)
            if v is not None:
                yield rid, v
