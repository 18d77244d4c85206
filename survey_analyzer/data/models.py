# survey_analyzer/data/models.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, List, Optional, Tuple


MISSING_SENTINEL = "NA"


class QuestionKind(str, Enum):
    SINGLE_CHOICE = "SingleChoice"
    MULTIPLE_CHOICE = "MultipleChoice"
    TEXT = "Text"
    NUMERIC = "Numeric"

    @property
    def is_multi_value(self) -> bool:
        return self is QuestionKind.MULTIPLE_CHOICE

    @classmethod
    def parse(cls, raw: Any) -> Optional["QuestionKind"]:
        """
        Resolve a declared kind from a schema cell or override string.

        Accepts the short codes used by survey exports (SC, MC, TE, NUM) as
        well as the enum names/values in any case. Returns None for blank or
        unrecognised input so the caller can fall back to inference.
        """
        if raw is None:
            return None
        s = str(raw).strip()
        if not s:
            return None
        key = s.lower().replace("_", "").replace(" ", "").replace("-", "")
        return _KIND_ALIASES.get(key)


_KIND_ALIASES = {
    "sc": QuestionKind.SINGLE_CHOICE,
    "single": QuestionKind.SINGLE_CHOICE,
    "singlechoice": QuestionKind.SINGLE_CHOICE,
    "mc": QuestionKind.MULTIPLE_CHOICE,
    "multi": QuestionKind.MULTIPLE_CHOICE,
    "multiple": QuestionKind.MULTIPLE_CHOICE,
    "multiplechoice": QuestionKind.MULTIPLE_CHOICE,
    "te": QuestionKind.TEXT,
    "text": QuestionKind.TEXT,
    "textentry": QuestionKind.TEXT,
    "num": QuestionKind.NUMERIC,
    "numeric": QuestionKind.NUMERIC,
    "number": QuestionKind.NUMERIC,
}


# Ordered rules for header-text inference; first match wins.
_KIND_RULES: Tuple[Tuple[QuestionKind, Tuple[str, ...]], ...] = (
    (QuestionKind.MULTIPLE_CHOICE, ("select all", "multiple")),
    (QuestionKind.NUMERIC, ("age", "years", "salary")),
    (QuestionKind.TEXT, ("describe", "other", "comment")),
)


def infer_kind(label: str) -> QuestionKind:
    # Best-effort heuristic only; declared kinds and overrides take precedence.
    text = (label or "").lower()
    for kind, needles in _KIND_RULES:
        if any(n in text for n in needles):
            return kind
    return QuestionKind.SINGLE_CHOICE


def is_missing(value: Optional[str]) -> bool:
    # Absent, blank and the "NA" sentinel are all "no answer" for statistics.
    if value is None:
        return True
    s = value.strip()
    return s == "" or s == MISSING_SENTINEL


def split_multi_value(value: str) -> List[str]:
    """
    Split a multiple-choice answer into its options.

    Splits on ';' when present, otherwise on ',' when present, otherwise the
    whole value is a single option. Pieces are trimmed and empty pieces are
    dropped.
    """
    if ";" in value:
        parts = value.split(";")
    elif "," in value:
        parts = value.split(",")
    else:
        parts = [value]
    return [p.strip() for p in parts if p.strip()]


def answer_options(kind: QuestionKind, value: Optional[str]) -> List[str]:
    # Options contributed by one raw answer under the question's kind.
    if is_missing(value):
        return []
    if kind.is_multi_value:
        return split_multi_value(value)
    return [value.strip()]


@dataclass(frozen=True)
class Question:
    id: str
    label: str
    kind: QuestionKind
    known_options: Tuple[str, ...] = field(default_factory=tuple)
    position: int = 0

    def with_kind(self, kind: QuestionKind) -> "Question":
        return replace(self, kind=kind)

    def with_options(self, options: Iterable[str]) -> "Question":
        return replace(self, known_options=tuple(dict.fromkeys(options)))
